from typing import Dict

from loguru import logger

from route_atlas.models.domain_models import CompiledClass, CompiledMethod
from route_atlas.services.annotation_resolver import AnnotationResolver
from route_atlas.services.class_repository import ClassRepository


class RouterMethodScanner:
    """Collects the route handler methods a controller exposes, inherited ones included."""

    def __init__(self, repository: ClassRepository, annotation_resolver: AnnotationResolver):
        self.repository = repository
        self.annotation_resolver = annotation_resolver

    def effective_methods(self, compiled_class: CompiledClass) -> Dict[str, CompiledMethod]:
        """Route methods keyed by name + parameter shape, most derived declaration wins."""
        chain = list(self.repository.superclass_chain(compiled_class))
        methods: Dict[str, CompiledMethod] = {}
        for owner in reversed(chain):
            for method in owner.methods:
                if self.annotation_resolver.is_router(method):
                    methods[method.method_key] = method
        logger.debug(f"{compiled_class.name}: {len(methods)} route method(s) across {len(chain)} class(es)")
        return methods
