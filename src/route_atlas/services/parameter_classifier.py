from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import (
    ClassifiedArguments, CompiledMethod, CompiledParameter, LocalVariable, Parameter, RequestBody, SourceKind
)
from route_atlas.models.errors import ParameterTypeNotFound
from route_atlas.services.annotation_resolver import AnnotationResolver
from route_atlas.services.class_repository import ClassRepository
from route_atlas.services.marker_catalog import (
    NON_NULL_MARKERS, NULLABLE_MARKERS, SourceKindSpec, find_source_kind
)
from route_atlas.services.schema_resolver import SchemaResolver
from route_atlas.services.signature_decoder import JvmSignatureDecoder, JvmType

# Names the Kotlin compiler gives the trailing continuation of a suspend function.
CONTINUATION_SLOT_NAMES = ('$completion', '$continuation')


@dataclass(frozen=True)
class _FormField:
    name: str
    java_type: str
    schema: Dict[str, Any]
    required: bool
    bean: bool


class ParameterClassifier:
    """Maps the formal parameters of a handler method to HTTP inputs."""

    def __init__(self, config: ExtractorConfig, decoder: JvmSignatureDecoder,
                 annotation_resolver: AnnotationResolver, schema_resolver: SchemaResolver):
        self.config = config
        self.decoder = decoder
        self.annotation_resolver = annotation_resolver
        self.schema_resolver = schema_resolver

    def classify(self, method: CompiledMethod, repository: Optional[ClassRepository] = None) -> ClassifiedArguments:
        """Parameters and request body of ``method``.

        ``repository`` lets form fields of enum type be told apart from form
        beans; without it every unknown class type counts as a bean.
        """
        parameters: List[Parameter] = []
        request_body: Optional[RequestBody] = None
        form: List[_FormField] = []

        continuation = self.decoder.ends_with_continuation(method)
        last = len(method.parameters) - 1
        for index, parameter in enumerate(method.parameters):
            variable = self._local_variable(method, parameter, continuation and index == last)
            jvm_type = self.decoder.decode_type(variable.descriptor, variable.signature)
            java_type = jvm_type.render()

            if self._is_ignored(jvm_type, java_type):
                logger.debug(f"Skipping runtime-supplied parameter {parameter.name}: {java_type}")
                continue

            spec = find_source_kind(parameter.annotations)
            if spec.excluded:
                continue

            required = self.is_required(java_type, parameter, spec)
            name = self.annotation_resolver.extract_value(parameter.annotations, spec.name_markers) or parameter.name

            if spec.kind is SourceKind.BODY:
                request_body = RequestBody(
                    java_type=java_type,
                    required=required,
                    content_type=self.config.default_content_type
                )
            elif spec.kind is SourceKind.FORM:
                form.append(_FormField(
                    name=name,
                    java_type=java_type,
                    schema=self.schema_resolver.schema(jvm_type, repository),
                    required=required,
                    bean=self.schema_resolver.is_bean(jvm_type, repository)
                ))
            else:
                parameters.append(Parameter(name=name, java_type=java_type, location=spec.kind, required=required))

        if form:
            request_body = self._form_body(form)

        return ClassifiedArguments(parameters=tuple(parameters), request_body=request_body)

    def _form_body(self, form: List[_FormField]) -> RequestBody:
        if len(form) == 1 and form[0].bean:
            # form bean: the whole object is the multipart body
            bean = form[0]
            return RequestBody(
                java_type=bean.java_type,
                required=bean.required,
                content_type=self.config.multipart_content_type
            )

        required_fields = [field.name for field in form if field.required]
        schema: Dict[str, Any] = {
            'type': 'object',
            'properties': {field.name: field.schema for field in form}
        }
        if required_fields:
            schema['required'] = required_fields
        return RequestBody(
            schema=schema,
            required=bool(required_fields),
            content_type=self.config.multipart_content_type
        )

    def is_required(self, java_type: str, parameter: CompiledParameter, spec: SourceKindSpec) -> bool:
        if self.decoder.is_primitive(java_type) or spec.always_required:
            return True
        nullable = self.nullability(parameter)
        if nullable is None:
            return self.config.missing_nullability_required
        return not nullable

    def nullability(self, parameter: CompiledParameter) -> Optional[bool]:
        """True/False from an explicit marker, None when the parameter carries none."""
        annotations = parameter.all_annotations
        if self.annotation_resolver.find(annotations, NULLABLE_MARKERS):
            return True
        if self.annotation_resolver.find(annotations, NON_NULL_MARKERS):
            return False
        return None

    def _local_variable(self, method: CompiledMethod, parameter: CompiledParameter,
                        continuation: bool) -> LocalVariable:
        names: Tuple[str, ...] = (parameter.name,)
        if continuation:
            names += ('$' + parameter.name,) + CONTINUATION_SLOT_NAMES
        for variable in method.local_variables:
            if variable.name in names:
                return variable
        raise ParameterTypeNotFound(method.name, parameter.name)

    def _is_ignored(self, jvm_type: JvmType, java_type: str) -> bool:
        return java_type in self.config.ignored_param_types or jvm_type.erasure == self.config.continuation_type
