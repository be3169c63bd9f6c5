from abc import ABC, abstractmethod
from pathlib import Path

from route_atlas.models.domain_models import CompiledClass


class BaseClassFileProcessor(ABC):
    """Abstract base class for decoders of compiled class artifacts."""

    @abstractmethod
    def process_file(self, file_path: Path) -> CompiledClass:
        """Decode a single compiled class file."""
        pass

    @abstractmethod
    def process_bytes(self, data: bytes, origin: str = "<memory>") -> CompiledClass:
        """Decode compiled class bytes; ``origin`` is only used in messages."""
        pass

    @abstractmethod
    def _read_file_content(self, file_path: Path) -> bytes:
        """Read the raw content of a class file."""
        pass
