from typing import Iterable, List, Optional

from route_atlas.models.domain_models import (
    ClassifiedArguments, CompiledClass, CompiledMethod, Operation, Response
)
from route_atlas.services import route_path
from route_atlas.services.annotation_resolver import AnnotationResolver
from route_atlas.services.marker_catalog import DEFAULT_METHOD


class OperationBuilder:
    """Turns one handler method into its (verb x pattern) operations."""

    def __init__(self, annotation_resolver: AnnotationResolver):
        self.annotation_resolver = annotation_resolver

    def build(self, controller: CompiledClass, method: CompiledMethod, verbs: Iterable[str],
              patterns: Iterable[str], arguments: ClassifiedArguments, response: Response,
              prefix: Optional[str] = None, produces: Iterable[str] = (),
              consumes: Iterable[str] = ()) -> List[Operation]:
        verbs = list(verbs) or [DEFAULT_METHOD]
        patterns = list(patterns) or [route_path.ROOT]
        produces = tuple(produces)
        consumes = tuple(consumes)
        deprecated = self.annotation_resolver.is_deprecated(method)

        operations = []
        for verb in verbs:
            for pattern in patterns:
                full_pattern = route_path.join(prefix, pattern)
                operations.append(Operation(
                    method=verb.upper(),
                    pattern=full_pattern,
                    parameters=arguments.parameters,
                    request_body=arguments.request_body,
                    response=response,
                    operation_id=method.name,
                    controller=controller.name,
                    java_method=method.name + method.descriptor,
                    deprecated=deprecated,
                    path_keys=route_path.path_keys(full_pattern),
                    produces=produces,
                    consumes=consumes
                ))
        return operations
