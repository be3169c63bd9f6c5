from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

ACC_STATIC = 0x0008
ACC_ENUM = 0x4000


@dataclass(frozen=True)
class EnumValue:
    type_name: str
    name: str


@dataclass(frozen=True)
class AnnotationNode:
    type_name: str
    values: Dict[str, Any] = field(default_factory=dict, hash=False)
    visible: bool = True

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    @property
    def simple_name(self) -> str:
        return self.type_name.rsplit('.', 1)[-1]


@dataclass(frozen=True)
class LocalVariable:
    name: str
    descriptor: str
    signature: Optional[str] = None
    index: int = 0
    start_pc: int = 0


@dataclass(frozen=True)
class CompiledParameter:
    name: str
    annotations: Tuple[AnnotationNode, ...] = ()
    invisible_annotations: Tuple[AnnotationNode, ...] = ()

    @property
    def all_annotations(self) -> Tuple[AnnotationNode, ...]:
        return self.annotations + self.invisible_annotations


@dataclass(frozen=True)
class CompiledMethod:
    name: str
    descriptor: str
    signature: Optional[str] = None
    access_flags: int = 0
    parameters: Tuple[CompiledParameter, ...] = ()
    local_variables: Tuple[LocalVariable, ...] = ()
    annotations: Tuple[AnnotationNode, ...] = ()
    invisible_annotations: Tuple[AnnotationNode, ...] = ()

    @property
    def method_key(self) -> str:
        """Name plus parameter part of the descriptor, e.g. ``find(J)``."""
        return self.name + self.descriptor[:self.descriptor.index(')') + 1]

    @property
    def is_static(self) -> bool:
        return bool(self.access_flags & ACC_STATIC)

    @property
    def all_annotations(self) -> Tuple[AnnotationNode, ...]:
        return self.annotations + self.invisible_annotations


@dataclass(frozen=True)
class CompiledClass:
    name: str
    superclass: Optional[str] = None
    methods: Tuple[CompiledMethod, ...] = ()
    annotations: Tuple[AnnotationNode, ...] = ()
    invisible_annotations: Tuple[AnnotationNode, ...] = ()
    access_flags: int = 0
    signature: Optional[str] = None
    interfaces: Tuple[str, ...] = ()

    @property
    def is_enum(self) -> bool:
        return bool(self.access_flags & ACC_ENUM) or self.superclass == 'java.lang.Enum'


@dataclass(frozen=True)
class MountReference:
    controller_type: str
    path_prefix: Optional[str] = None


class SourceKind(Enum):
    CONTEXT = "context"
    HEADER = "header"
    COOKIE = "cookie"
    PATH = "path"
    QUERY = "query"
    FORM = "form"
    BODY = "body"


@dataclass(frozen=True)
class Parameter:
    name: str
    java_type: str
    location: SourceKind
    required: bool = False

    @property
    def in_(self) -> str:
        return self.location.value

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "in": self.in_,
            "type": self.java_type,
            "required": self.required
        }


@dataclass(frozen=True)
class RequestBody:
    java_type: Optional[str] = None
    schema: Optional[Dict[str, Any]] = field(default=None, hash=False)
    required: bool = False
    content_type: str = "application/json"

    def to_dict(self) -> Dict:
        return {
            "type": self.java_type,
            "schema": self.schema,
            "required": self.required,
            "content_type": self.content_type
        }


@dataclass(frozen=True)
class Response:
    java_types: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {"types": list(self.java_types)}


@dataclass(frozen=True)
class Operation:
    method: str
    pattern: str
    parameters: Tuple[Parameter, ...]
    request_body: Optional[RequestBody]
    response: Response
    operation_id: str
    controller: str
    java_method: str
    deprecated: bool = False
    path_keys: Tuple[str, ...] = ()
    produces: Tuple[str, ...] = ()
    consumes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        """Convert Operation to a JSON-serializable dictionary."""
        return {
            "method": self.method,
            "pattern": self.pattern,
            "operation_id": self.operation_id,
            "controller": self.controller,
            "java_method": self.java_method,
            "deprecated": self.deprecated,
            "path_keys": list(self.path_keys),
            "produces": list(self.produces),
            "consumes": list(self.consumes),
            "parameters": [parameter.to_dict() for parameter in self.parameters],
            "request_body": self.request_body.to_dict() if self.request_body else None,
            "response": self.response.to_dict()
        }


@dataclass(frozen=True)
class ClassifiedArguments:
    """Result of classifying the formal parameters of one handler method."""
    parameters: Tuple[Parameter, ...] = ()
    request_body: Optional[RequestBody] = None


def operations_to_dicts(operations: List[Operation]) -> List[Dict]:
    return [operation.to_dict() for operation in operations]
