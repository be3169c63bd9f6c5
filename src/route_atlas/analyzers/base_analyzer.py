from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import MountReference, Operation


class BaseRouteAnalyzer(ABC):
    """Abstract base class for static route extractors."""

    def __init__(self, config: ExtractorConfig):
        self.config = config

    @abstractmethod
    def parse_mounts(self, mounts: List[MountReference]) -> List[Operation]:
        """Extract the operations registered by every mount reference, in order."""
        pass

    @abstractmethod
    def export_results(self, operations: List[Operation], output_path: Path) -> None:
        """Export extraction results to the specified output path."""
        pass

    @abstractmethod
    def generate_statistics(self, operations: List[Operation]) -> Dict:
        """Generate statistics for the extracted operations."""
        pass
