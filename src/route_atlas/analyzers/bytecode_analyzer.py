from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from route_atlas.analyzers.base_analyzer import BaseRouteAnalyzer
from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import (
    CompiledClass, CompiledMethod, MountReference, Operation, Response
)
from route_atlas.services.annotation_resolver import AnnotationResolver
from route_atlas.services.class_repository import ClassRepository, ClassSource
from route_atlas.services.marker_catalog import CONSUMES_MARKERS, PRODUCES_MARKERS
from route_atlas.services.operation_builder import OperationBuilder
from route_atlas.services.parameter_classifier import ParameterClassifier
from route_atlas.services.result_exporter import ResultExporter
from route_atlas.services.router_method_scanner import RouterMethodScanner
from route_atlas.services.schema_resolver import SchemaResolver
from route_atlas.services.signature_decoder import JvmSignatureDecoder
from route_atlas.services.statistics_generator import StatisticsGenerator


class BytecodeRouteAnalyzer(BaseRouteAnalyzer):
    """Extracts routes from compiled JVM controllers, implementing BaseRouteAnalyzer."""

    def __init__(self, source: ClassSource, config: Optional[ExtractorConfig] = None):
        super().__init__(config or ExtractorConfig())
        self.source = source

        # Initialize services
        self.decoder = JvmSignatureDecoder(self.config)
        self.annotation_resolver = AnnotationResolver(self.config)
        self.schema_resolver = SchemaResolver()
        self.parameter_classifier = ParameterClassifier(
            self.config, self.decoder, self.annotation_resolver, self.schema_resolver
        )
        self.operation_builder = OperationBuilder(self.annotation_resolver)
        self.statistics_generator = StatisticsGenerator()
        self.result_exporter = ResultExporter()

    def parse_mounts(self, mounts: List[MountReference]) -> List[Operation]:
        """Run one extraction pass; any fatal error aborts the whole pass."""
        logger.info(f"Starting route extraction for {len(mounts)} mount reference(s)")
        repository = ClassRepository(self.source, self.config)
        scanner = RouterMethodScanner(repository, self.annotation_resolver)

        operations: List[Operation] = []
        for i, mount in enumerate(mounts):
            logger.debug(f"Processing mount {i + 1}/{len(mounts)}: {mount.controller_type}")
            operations.extend(self.parse_mount(repository, scanner, mount))

        logger.info(f"Extracted {len(operations)} operations, loaded {len(repository)} classes")
        return operations

    def parse_mount(self, repository: ClassRepository, scanner: RouterMethodScanner,
                    mount: MountReference) -> List[Operation]:
        controller = repository.resolve(mount.controller_type)
        methods: Dict[str, CompiledMethod] = scanner.effective_methods(controller)
        result = []
        for method in methods.values():
            result.extend(self._router_method(repository, controller, method, mount.path_prefix))
        return result

    def _router_method(self, repository: ClassRepository, controller: CompiledClass,
                       method: CompiledMethod, prefix: Optional[str]) -> List[Operation]:
        logger.debug(f"Handler {controller.name}.{method.name}{method.descriptor}")
        arguments = self.parameter_classifier.classify(method, repository)
        response = Response(java_types=(self.decoder.return_type(method),))
        produces = self.annotation_resolver.media_types(repository, controller, method, PRODUCES_MARKERS)
        consumes = self.annotation_resolver.media_types(repository, controller, method, CONSUMES_MARKERS)

        result = []
        for http_method in self.annotation_resolver.http_methods(method):
            patterns = self.annotation_resolver.http_patterns(repository, controller, method, http_method)
            result.extend(self.operation_builder.build(
                controller, method, [http_method], patterns, arguments, response,
                prefix=prefix, produces=produces, consumes=consumes
            ))
        return result

    def export_results(self, operations: List[Operation], output_path: Path) -> None:
        """Export extraction results."""
        self.result_exporter.export_results(operations, output_path)

    def generate_statistics(self, operations: List[Operation]) -> Dict:
        """Generate extraction statistics."""
        return self.statistics_generator.generate_statistics(operations)
