from typing import Any, FrozenSet, Iterable, List, Optional, Tuple

from loguru import logger

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import AnnotationNode, CompiledClass, CompiledMethod
from route_atlas.services import route_path
from route_atlas.services.class_repository import ClassRepository
from route_atlas.services.marker_catalog import (
    DEFAULT_METHOD, DEPRECATION_MARKERS, GENERIC_PATH_MARKERS, NEUTRAL_PATH_MARKERS, PATH,
    VERB_PACKAGES, verb_markers, vocabulary
)


def _listify(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class AnnotationResolver:
    """Matches annotations against the marker catalog and reads their literals."""

    def __init__(self, config: ExtractorConfig):
        self.config = config
        self.router_markers = verb_markers(config.http_methods)

    @staticmethod
    def find(annotations: Iterable[AnnotationNode], markers: FrozenSet[str]) -> List[AnnotationNode]:
        return [annotation for annotation in annotations if annotation.type_name in markers]

    def extract_value(self, annotations: Iterable[AnnotationNode], markers: FrozenSet[str]) -> Optional[str]:
        """First non-blank ``value`` of a matching annotation, blanks count as absent."""
        for annotation in self.find(annotations, markers):
            value = annotation.get('value')
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    def is_router(self, method: CompiledMethod) -> bool:
        return bool(self.find(method.annotations, self.router_markers))

    def is_deprecated(self, method: CompiledMethod) -> bool:
        return bool(self.find(method.all_annotations, DEPRECATION_MARKERS))

    def http_methods(self, method: CompiledMethod) -> List[str]:
        """Verb names of the method; a lone path marker means GET."""
        names = []
        for annotation in self.find(method.annotations, self.router_markers):
            name = annotation.simple_name
            if name not in names:
                names.append(name)
        if names == [PATH]:
            return [DEFAULT_METHOD]
        return [name for name in names if name != PATH]

    def http_patterns(self, repository: ClassRepository, controller: CompiledClass,
                      method: CompiledMethod, http_method: str) -> List[str]:
        """Resolved path patterns of ``method`` for one verb, class prefix included."""
        root_patterns: List[str] = []
        for compiled_class in repository.superclass_chain(controller):
            root_patterns = self._patterns(http_method, None, compiled_class.annotations)
            if root_patterns:
                if compiled_class is not controller:
                    logger.debug(f"Path prefix of {controller.name} inherited from {compiled_class.name}")
                break

        if not root_patterns:
            root_patterns = [route_path.ROOT]

        patterns = []
        for prefix in root_patterns:
            patterns.extend(self._patterns(http_method, prefix, method.annotations))

        if not patterns:
            patterns.append(route_path.ROOT)
        return patterns

    def media_types(self, repository: ClassRepository, controller: CompiledClass,
                    method: CompiledMethod, markers: FrozenSet[str]) -> Tuple[str, ...]:
        """``Produces``/``Consumes`` values, method level first then up the class chain."""
        values = self._values(method.annotations, markers)
        if values:
            return tuple(values)
        for compiled_class in repository.superclass_chain(controller):
            values = self._values(compiled_class.annotations, markers)
            if values:
                return tuple(values)
        return ()

    def _patterns(self, http_method: str, prefix: Optional[str],
                  annotations: Iterable[AnnotationNode]) -> List[str]:
        annotations = list(annotations)
        values = self._values(annotations, vocabulary(http_method, VERB_PACKAGES), ('value', 'path'))
        if not values:
            values = self._values(annotations, GENERIC_PATH_MARKERS)
            if not values:
                values = self._values(annotations, NEUTRAL_PATH_MARKERS)

        patterns = [route_path.join(prefix, value) for value in values]
        if prefix is not None and not patterns:
            patterns.append(route_path.join(prefix, None))
        return patterns

    def _values(self, annotations: Iterable[AnnotationNode], markers: FrozenSet[str],
                attributes: Tuple[str, ...] = ('value',)) -> List[str]:
        values = []
        for annotation in self.find(annotations, markers):
            for attribute in attributes:
                literals = [str(v).strip() for v in _listify(annotation.get(attribute))
                            if v is not None and str(v).strip()]
                if literals:
                    values.extend(literals)
                    break
        return values
