from pathlib import Path
from typing import Iterable, Optional

from route_atlas.analyzers.base_analyzer import BaseRouteAnalyzer
from route_atlas.analyzers.bytecode_analyzer import BytecodeRouteAnalyzer
from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import CompiledClass
from route_atlas.processors.class_file_processor import ClassFileProcessor
from route_atlas.services.class_repository import ClasspathSource, InMemoryClassSource


class AnalyzerFactory:
    """Factory for creating route analyzers."""

    @staticmethod
    def create_analyzer(platform: str, classpath: Iterable[Path],
                        config: Optional[ExtractorConfig] = None) -> BaseRouteAnalyzer:
        """Create an analyzer for the specified compiled platform."""
        platform = platform.lower()
        if platform in ('jvm', 'java', 'kotlin'):
            config = config or ExtractorConfig()
            source = ClasspathSource(classpath, ClassFileProcessor(config))
            return BytecodeRouteAnalyzer(source, config)
        else:
            raise ValueError(f"Unsupported platform: {platform}")

    @staticmethod
    def create_default_analyzer(classpath: Iterable[Path]) -> BaseRouteAnalyzer:
        """Create a default analyzer (JVM)."""
        return AnalyzerFactory.create_analyzer('jvm', classpath)

    @staticmethod
    def create_in_memory_analyzer(classes: Iterable[CompiledClass],
                                  config: Optional[ExtractorConfig] = None) -> BaseRouteAnalyzer:
        """Create an analyzer over already-decoded classes."""
        return BytecodeRouteAnalyzer(InMemoryClassSource(classes), config)
