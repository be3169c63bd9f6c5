from typing import Any, Dict, Optional

from route_atlas.services.class_repository import ClassRepository
from route_atlas.services.signature_decoder import JvmType

SCALAR_SCHEMAS: Dict[str, Dict[str, Any]] = {
    'boolean': {'type': 'boolean'},
    'java.lang.Boolean': {'type': 'boolean'},
    'byte': {'type': 'integer', 'format': 'int32'},
    'java.lang.Byte': {'type': 'integer', 'format': 'int32'},
    'short': {'type': 'integer', 'format': 'int32'},
    'java.lang.Short': {'type': 'integer', 'format': 'int32'},
    'int': {'type': 'integer', 'format': 'int32'},
    'java.lang.Integer': {'type': 'integer', 'format': 'int32'},
    'long': {'type': 'integer', 'format': 'int64'},
    'java.lang.Long': {'type': 'integer', 'format': 'int64'},
    'java.math.BigInteger': {'type': 'integer'},
    'float': {'type': 'number', 'format': 'float'},
    'java.lang.Float': {'type': 'number', 'format': 'float'},
    'double': {'type': 'number', 'format': 'double'},
    'java.lang.Double': {'type': 'number', 'format': 'double'},
    'java.math.BigDecimal': {'type': 'number'},
    'char': {'type': 'string'},
    'java.lang.Character': {'type': 'string'},
    'java.lang.String': {'type': 'string'},
    'java.lang.CharSequence': {'type': 'string'},
    'java.util.UUID': {'type': 'string', 'format': 'uuid'},
    'java.net.URI': {'type': 'string', 'format': 'uri'},
    'java.net.URL': {'type': 'string', 'format': 'uri'},
    'java.time.LocalDate': {'type': 'string', 'format': 'date'},
    'java.time.LocalDateTime': {'type': 'string', 'format': 'date-time'},
    'java.time.OffsetDateTime': {'type': 'string', 'format': 'date-time'},
    'java.time.ZonedDateTime': {'type': 'string', 'format': 'date-time'},
    'java.time.Instant': {'type': 'string', 'format': 'date-time'},
    'java.util.Date': {'type': 'string', 'format': 'date-time'},
    'java.time.Duration': {'type': 'string'},
    'java.time.Period': {'type': 'string'},
    'io.jooby.FileUpload': {'type': 'string', 'format': 'binary'},
    'java.io.File': {'type': 'string', 'format': 'binary'},
    'java.nio.file.Path': {'type': 'string', 'format': 'binary'},
    'java.io.InputStream': {'type': 'string', 'format': 'binary'},
    'java.lang.Object': {'type': 'object'},
}

ARRAY_TYPES = {
    'java.lang.Iterable', 'java.util.Collection', 'java.util.List', 'java.util.ArrayList',
    'java.util.LinkedList', 'java.util.Set', 'java.util.HashSet', 'java.util.LinkedHashSet',
    'java.util.SortedSet', 'java.util.TreeSet', 'kotlin.collections.List', 'kotlin.collections.Set'
}

MAP_TYPES = {
    'java.util.Map', 'java.util.HashMap', 'java.util.LinkedHashMap', 'java.util.SortedMap',
    'java.util.TreeMap', 'kotlin.collections.Map'
}

OPTIONAL_TYPES = {
    'java.util.Optional': None,
    'java.util.OptionalInt': 'int',
    'java.util.OptionalLong': 'long',
    'java.util.OptionalDouble': 'double'
}


class SchemaResolver:
    """Maps decoded types to minimal JSON-schema fragments."""

    def schema(self, jvm_type: JvmType, repository: Optional[ClassRepository] = None) -> Dict[str, Any]:
        """Schema fragment of ``jvm_type``; with a repository, enum classes map to strings."""
        if jvm_type.kind == 'wildcard':
            return self.schema(jvm_type.unwrap(), repository)
        if jvm_type.kind == 'variable':
            return {'type': 'object'}
        if jvm_type.kind == 'array':
            if jvm_type.component.name == 'byte':
                return {'type': 'string', 'format': 'binary'}
            return {'type': 'array', 'items': self.schema(jvm_type.component, repository)}

        name = jvm_type.name
        if name in SCALAR_SCHEMAS:
            return dict(SCALAR_SCHEMAS[name])
        if name in ARRAY_TYPES:
            items = self.schema(jvm_type.arguments[0], repository) if jvm_type.arguments else {}
            return {'type': 'array', 'items': items}
        if name in MAP_TYPES:
            schema: Dict[str, Any] = {'type': 'object'}
            if len(jvm_type.arguments) == 2:
                schema['additionalProperties'] = self.schema(jvm_type.arguments[1], repository)
            return schema
        if name in OPTIONAL_TYPES:
            if jvm_type.arguments:
                return self.schema(jvm_type.arguments[0], repository)
            return dict(SCALAR_SCHEMAS.get(OPTIONAL_TYPES[name] or 'java.lang.Object'))
        if repository is not None and self.is_enum(name, repository):
            return {'type': 'string'}
        return {'$ref': f"#/components/schemas/{name.rsplit('.', 1)[-1].replace('$', '.')}"}

    def is_enum(self, type_name: str, repository: ClassRepository) -> bool:
        """Enum classes travel as their constant names; unknown types are not enums."""
        compiled_class = repository.find(type_name)
        return compiled_class is not None and compiled_class.is_enum

    def is_bean(self, jvm_type: JvmType, repository: Optional[ClassRepository] = None) -> bool:
        """True for object types documented as their own schema (a form bean)."""
        return '$ref' in self.schema(jvm_type, repository) and jvm_type.kind == 'class'
