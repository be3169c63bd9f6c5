"""Minimal JVM class file writer, just enough to feed the class file processor."""
import struct
from typing import Any, Dict, List, Optional, Sequence, Tuple

from route_atlas.models.domain_models import EnumValue

ACC_PUBLIC = 0x0001
ACC_STATIC = 0x0008
ACC_SUPER = 0x0020

AnnotationSpec = Tuple[str, Dict[str, Any]]
LocalSpec = Tuple[str, str, Optional[str], int]


def _internal(name: str) -> str:
    return name.replace('.', '/')


class ClassFileWriter:
    def __init__(self, name: str, superclass: Optional[str] = 'java.lang.Object',
                 access: int = ACC_PUBLIC | ACC_SUPER, major: int = 52):
        self.name = name
        self.superclass = superclass
        self.access = access
        self.major = major
        self.pool: List[bytes] = []
        self.pool_keys: Dict[Tuple, int] = {}
        self.next_index = 1
        self.methods: List[bytes] = []
        self.annotations: List[AnnotationSpec] = []
        self.invisible_annotations: List[AnnotationSpec] = []
        self.signature: Optional[str] = None

    def _add(self, key: Tuple, data: bytes, slots: int = 1) -> int:
        if key in self.pool_keys:
            return self.pool_keys[key]
        index = self.next_index
        self.pool.append(data)
        self.pool_keys[key] = index
        self.next_index += slots
        return index

    def utf8(self, text: str) -> int:
        raw = text.encode('utf-8')
        return self._add(('utf8', text), struct.pack('>BH', 1, len(raw)) + raw)

    def integer(self, value: int) -> int:
        return self._add(('int', value), struct.pack('>Bi', 3, value))

    def long(self, value: int) -> int:
        return self._add(('long', value), struct.pack('>Bq', 5, value), slots=2)

    def class_ref(self, name: str) -> int:
        name_index = self.utf8(_internal(name))
        return self._add(('class', name), struct.pack('>BH', 7, name_index))

    def attribute(self, name: str, data: bytes) -> bytes:
        return struct.pack('>HI', self.utf8(name), len(data)) + data

    def element(self, value: Any) -> bytes:
        if isinstance(value, bool):
            return b'Z' + struct.pack('>H', self.integer(int(value)))
        if isinstance(value, int):
            return b'I' + struct.pack('>H', self.integer(value))
        if isinstance(value, str):
            return b's' + struct.pack('>H', self.utf8(value))
        if isinstance(value, EnumValue):
            descriptor = 'L' + _internal(value.type_name) + ';'
            return b'e' + struct.pack('>HH', self.utf8(descriptor), self.utf8(value.name))
        if isinstance(value, list):
            return b'[' + struct.pack('>H', len(value)) + b''.join(self.element(v) for v in value)
        raise TypeError(f"Unsupported element value {value!r}")

    def annotation(self, spec: AnnotationSpec) -> bytes:
        type_name, values = spec
        data = struct.pack('>HH', self.utf8('L' + _internal(type_name) + ';'), len(values))
        for key, value in values.items():
            data += struct.pack('>H', self.utf8(key)) + self.element(value)
        return data

    def annotations_attribute(self, name: str, specs: Sequence[AnnotationSpec]) -> bytes:
        data = struct.pack('>H', len(specs)) + b''.join(self.annotation(spec) for spec in specs)
        return self.attribute(name, data)

    def parameter_annotations_attribute(self, name: str, specs: Sequence[Sequence[AnnotationSpec]]) -> bytes:
        data = struct.pack('>B', len(specs))
        for parameter_specs in specs:
            data += struct.pack('>H', len(parameter_specs))
            data += b''.join(self.annotation(spec) for spec in parameter_specs)
        return self.attribute(name, data)

    def add_method(self, name: str, descriptor: str, access: int = ACC_PUBLIC,
                   signature: Optional[str] = None,
                   annotations: Sequence[AnnotationSpec] = (),
                   invisible_annotations: Sequence[AnnotationSpec] = (),
                   parameter_annotations: Optional[Sequence[Sequence[AnnotationSpec]]] = None,
                   invisible_parameter_annotations: Optional[Sequence[Sequence[AnnotationSpec]]] = None,
                   parameter_names: Optional[Sequence[str]] = None,
                   local_variables: Sequence[LocalSpec] = (),
                   with_code: bool = True) -> 'ClassFileWriter':
        attributes = []
        if signature:
            attributes.append(self.attribute('Signature', struct.pack('>H', self.utf8(signature))))
        if annotations:
            attributes.append(self.annotations_attribute('RuntimeVisibleAnnotations', annotations))
        if invisible_annotations:
            attributes.append(self.annotations_attribute('RuntimeInvisibleAnnotations', invisible_annotations))
        if parameter_annotations is not None:
            attributes.append(self.parameter_annotations_attribute(
                'RuntimeVisibleParameterAnnotations', parameter_annotations))
        if invisible_parameter_annotations is not None:
            attributes.append(self.parameter_annotations_attribute(
                'RuntimeInvisibleParameterAnnotations', invisible_parameter_annotations))
        if parameter_names is not None:
            data = struct.pack('>B', len(parameter_names))
            for parameter_name in parameter_names:
                data += struct.pack('>HH', self.utf8(parameter_name), 0)
            attributes.append(self.attribute('MethodParameters', data))
        if with_code:
            attributes.append(self._code(local_variables))

        self.methods.append(
            struct.pack('>HHHH', access, self.utf8(name), self.utf8(descriptor), len(attributes))
            + b''.join(attributes)
        )
        return self

    def _code(self, local_variables: Sequence[LocalSpec]) -> bytes:
        code = b'\x01\xb0'  # aconst_null; areturn
        nested = []
        if local_variables:
            table = struct.pack('>H', len(local_variables))
            for variable_name, descriptor, _, index in local_variables:
                table += struct.pack('>HHHHH', 0, len(code), self.utf8(variable_name), self.utf8(descriptor), index)
            nested.append(self.attribute('LocalVariableTable', table))
            generic = [v for v in local_variables if v[2]]
            if generic:
                table = struct.pack('>H', len(generic))
                for variable_name, _, signature, index in generic:
                    table += struct.pack('>HHHHH', 0, len(code), self.utf8(variable_name), self.utf8(signature), index)
                nested.append(self.attribute('LocalVariableTypeTable', table))
        data = struct.pack('>HHI', 1, 16, len(code)) + code + struct.pack('>H', 0)
        data += struct.pack('>H', len(nested)) + b''.join(nested)
        return self.attribute('Code', data)

    def to_bytes(self) -> bytes:
        this_index = self.class_ref(self.name)
        super_index = self.class_ref(self.superclass) if self.superclass else 0
        attributes = []
        if self.annotations:
            attributes.append(self.annotations_attribute('RuntimeVisibleAnnotations', self.annotations))
        if self.invisible_annotations:
            attributes.append(self.annotations_attribute('RuntimeInvisibleAnnotations', self.invisible_annotations))
        if self.signature:
            attributes.append(self.attribute('Signature', struct.pack('>H', self.utf8(self.signature))))

        body = struct.pack('>HHH', self.access, this_index, super_index)
        body += struct.pack('>H', 0)  # interfaces
        body += struct.pack('>H', 0)  # fields
        body += struct.pack('>H', len(self.methods)) + b''.join(self.methods)
        body += struct.pack('>H', len(attributes)) + b''.join(attributes)

        header = struct.pack('>IHH', 0xCAFEBABE, 0, self.major)
        header += struct.pack('>H', self.next_index) + b''.join(self.pool)
        return header + body
