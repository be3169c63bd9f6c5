import struct
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import (
    ACC_STATIC, AnnotationNode, CompiledClass, CompiledMethod, CompiledParameter, EnumValue, LocalVariable
)
from route_atlas.models.errors import ClassFormatError, RouteAtlasError
from route_atlas.processors.base_processor import BaseClassFileProcessor
from route_atlas.services.signature_decoder import JvmSignatureDecoder, descriptor_to_name

MAGIC = 0xCAFEBABE

CONSTANT_UTF8 = 1
CONSTANT_INTEGER = 3
CONSTANT_FLOAT = 4
CONSTANT_LONG = 5
CONSTANT_DOUBLE = 6
CONSTANT_CLASS = 7
CONSTANT_STRING = 8
CONSTANT_FIELDREF = 9
CONSTANT_METHODREF = 10
CONSTANT_INTERFACE_METHODREF = 11
CONSTANT_NAME_AND_TYPE = 12
CONSTANT_METHOD_HANDLE = 15
CONSTANT_METHOD_TYPE = 16
CONSTANT_DYNAMIC = 17
CONSTANT_INVOKE_DYNAMIC = 18
CONSTANT_MODULE = 19
CONSTANT_PACKAGE = 20

# Payload size of the constant pool entries this decoder does not keep.
_SKIPPED_CONSTANTS = {
    CONSTANT_FIELDREF: 4,
    CONSTANT_METHODREF: 4,
    CONSTANT_INTERFACE_METHODREF: 4,
    CONSTANT_NAME_AND_TYPE: 4,
    CONSTANT_METHOD_HANDLE: 3,
    CONSTANT_METHOD_TYPE: 2,
    CONSTANT_DYNAMIC: 4,
    CONSTANT_INVOKE_DYNAMIC: 4,
    CONSTANT_MODULE: 2,
    CONSTANT_PACKAGE: 2
}

VISIBLE_ANNOTATIONS = 'RuntimeVisibleAnnotations'
INVISIBLE_ANNOTATIONS = 'RuntimeInvisibleAnnotations'
VISIBLE_PARAMETER_ANNOTATIONS = 'RuntimeVisibleParameterAnnotations'
INVISIBLE_PARAMETER_ANNOTATIONS = 'RuntimeInvisibleParameterAnnotations'


class _ByteReader:
    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.pos = offset

    def _unpack(self, fmt: str, size: int):
        try:
            value = struct.unpack_from(fmt, self.data, self.pos)[0]
        except struct.error as e:
            raise ClassFormatError(f"Truncated class file at offset {self.pos}") from e
        self.pos += size
        return value

    def u1(self) -> int:
        return self._unpack('>B', 1)

    def u2(self) -> int:
        return self._unpack('>H', 2)

    def u4(self) -> int:
        return self._unpack('>I', 4)

    def read(self, length: int) -> bytes:
        if self.pos + length > len(self.data):
            raise ClassFormatError(f"Truncated class file at offset {self.pos}")
        chunk = self.data[self.pos:self.pos + length]
        self.pos += length
        return chunk

    def skip(self, length: int) -> None:
        self.read(length)


def decode_modified_utf8(raw: bytes) -> str:
    """Class files store strings as modified UTF-8 (CESU-8 with 0xC080 for NUL)."""
    text = raw.replace(b'\xc0\x80', b'\x00').decode('utf-8', errors='surrogatepass')
    return text.encode('utf-16', errors='surrogatepass').decode('utf-16')


class _ConstantPool:
    def __init__(self, reader: _ByteReader):
        count = reader.u2()
        self.entries: List[Optional[Tuple[int, Any]]] = [None] * count
        index = 1
        while index < count:
            tag = reader.u1()
            if tag == CONSTANT_UTF8:
                self.entries[index] = (tag, decode_modified_utf8(reader.read(reader.u2())))
            elif tag == CONSTANT_INTEGER:
                self.entries[index] = (tag, struct.unpack('>i', reader.read(4))[0])
            elif tag == CONSTANT_FLOAT:
                self.entries[index] = (tag, struct.unpack('>f', reader.read(4))[0])
            elif tag == CONSTANT_LONG:
                self.entries[index] = (tag, struct.unpack('>q', reader.read(8))[0])
                index += 1
            elif tag == CONSTANT_DOUBLE:
                self.entries[index] = (tag, struct.unpack('>d', reader.read(8))[0])
                index += 1
            elif tag in (CONSTANT_CLASS, CONSTANT_STRING):
                self.entries[index] = (tag, reader.u2())
            elif tag in _SKIPPED_CONSTANTS:
                reader.skip(_SKIPPED_CONSTANTS[tag])
            else:
                raise ClassFormatError(f"Unknown constant pool tag {tag} at index {index}")
            index += 1

    def _entry(self, index: int, *tags: int) -> Any:
        entry = self.entries[index] if 0 < index < len(self.entries) else None
        if entry is None or entry[0] not in tags:
            raise ClassFormatError(f"Bad constant pool reference {index}")
        return entry[1]

    def utf8(self, index: int) -> str:
        return self._entry(index, CONSTANT_UTF8)

    def class_name(self, index: int) -> str:
        return self.utf8(self._entry(index, CONSTANT_CLASS)).replace('/', '.')

    def constant(self, index: int) -> Any:
        value = self._entry(index, CONSTANT_UTF8, CONSTANT_INTEGER, CONSTANT_FLOAT,
                            CONSTANT_LONG, CONSTANT_DOUBLE, CONSTANT_STRING)
        if self.entries[index][0] == CONSTANT_STRING:
            return self.utf8(value)
        return value


class ClassFileProcessor(BaseClassFileProcessor):
    """Decodes JVM class files into ``CompiledClass`` records.

    Only the metadata route extraction needs is kept: names, descriptors,
    generic signatures, annotations (class, method and parameter level),
    parameter names and the local-variable tables. Method bodies are skipped.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.decoder = JvmSignatureDecoder(config or ExtractorConfig())

    def process_file(self, file_path: Path) -> CompiledClass:
        return self.process_bytes(self._read_file_content(file_path), str(file_path))

    def _read_file_content(self, file_path: Path) -> bytes:
        with open(file_path, 'rb') as f:
            return f.read()

    def process_bytes(self, data: bytes, origin: str = "<memory>") -> CompiledClass:
        reader = _ByteReader(data)
        if reader.u4() != MAGIC:
            raise ClassFormatError(f"Not a class file: {origin}")
        reader.u2()  # minor
        major = reader.u2()
        pool = _ConstantPool(reader)

        access_flags = reader.u2()
        name = pool.class_name(reader.u2())
        super_index = reader.u2()
        superclass = pool.class_name(super_index) if super_index else None
        interfaces = tuple(pool.class_name(reader.u2()) for _ in range(reader.u2()))

        for _ in range(reader.u2()):
            reader.skip(6)
            self._read_attributes(reader, pool)

        methods = []
        for _ in range(reader.u2()):
            methods.append(self._read_method(reader, pool, name))

        attributes = self._read_attributes(reader, pool)
        logger.debug(f"Decoded {name} (class file version {major}) from {origin}: {len(methods)} methods")
        return CompiledClass(
            name=name,
            superclass=superclass,
            methods=tuple(methods),
            annotations=self._annotations(attributes, VISIBLE_ANNOTATIONS, pool, True),
            invisible_annotations=self._annotations(attributes, INVISIBLE_ANNOTATIONS, pool, False),
            access_flags=access_flags,
            signature=self._signature(attributes, pool),
            interfaces=interfaces
        )

    def _read_attributes(self, reader: _ByteReader, pool: _ConstantPool) -> Dict[str, bytes]:
        attributes = {}
        for _ in range(reader.u2()):
            attribute_name = pool.utf8(reader.u2())
            attributes[attribute_name] = reader.read(reader.u4())
        return attributes

    def _signature(self, attributes: Dict[str, bytes], pool: _ConstantPool) -> Optional[str]:
        if 'Signature' not in attributes:
            return None
        return pool.utf8(_ByteReader(attributes['Signature']).u2())

    def _read_method(self, reader: _ByteReader, pool: _ConstantPool, owner: str) -> CompiledMethod:
        access_flags = reader.u2()
        name = pool.utf8(reader.u2())
        descriptor = pool.utf8(reader.u2())
        attributes = self._read_attributes(reader, pool)

        local_variables = self._local_variables(attributes.get('Code'), pool)
        visible = self._parameter_annotations(attributes, VISIBLE_PARAMETER_ANNOTATIONS, pool, True)
        invisible = self._parameter_annotations(attributes, INVISIBLE_PARAMETER_ANNOTATIONS, pool, False)
        names = self._parameter_names(owner, name, descriptor, access_flags, attributes, pool, local_variables)

        parameters = tuple(
            CompiledParameter(
                name=parameter_name,
                annotations=visible[index] if index < len(visible) else (),
                invisible_annotations=invisible[index] if index < len(invisible) else ()
            )
            for index, parameter_name in enumerate(names)
        )
        return CompiledMethod(
            name=name,
            descriptor=descriptor,
            signature=self._signature(attributes, pool),
            access_flags=access_flags,
            parameters=parameters,
            local_variables=local_variables,
            annotations=self._annotations(attributes, VISIBLE_ANNOTATIONS, pool, True),
            invisible_annotations=self._annotations(attributes, INVISIBLE_ANNOTATIONS, pool, False)
        )

    def _parameter_names(self, owner: str, method_name: str, descriptor: str, access_flags: int,
                         attributes: Dict[str, bytes], pool: _ConstantPool,
                         local_variables: Tuple[LocalVariable, ...]) -> List[str]:
        try:
            types = self.decoder.parse_method(descriptor).parameters
        except RouteAtlasError as e:
            raise ClassFormatError(f"Bad descriptor on {owner}.{method_name}: {e}") from e

        declared: List[Optional[str]] = [None] * len(types)
        if 'MethodParameters' in attributes:
            reader = _ByteReader(attributes['MethodParameters'])
            count = reader.u1()
            entries = []
            for _ in range(count):
                name_index = reader.u2()
                reader.u2()  # access flags
                entries.append(pool.utf8(name_index) if name_index else None)
            if count == len(types):
                declared = entries

        slot = 0 if access_flags & ACC_STATIC else 1
        names = []
        for index, jvm_type in enumerate(types):
            name = declared[index]
            if name is None:
                name = next((v.name for v in local_variables if v.index == slot and v.start_pc == 0), None)
            if name is None:
                logger.warning(f"No parameter name for {owner}.{method_name} parameter {index}, compiled without -g?")
                name = f"arg{index}"
            names.append(name)
            slot += jvm_type.slot_size
        return names

    def _local_variables(self, code: Optional[bytes], pool: _ConstantPool) -> Tuple[LocalVariable, ...]:
        if code is None:
            return ()
        reader = _ByteReader(code)
        reader.skip(4)  # max_stack, max_locals
        reader.skip(reader.u4())
        reader.skip(reader.u2() * 8)
        attributes = self._read_attributes(reader, pool)

        signatures = {}
        if 'LocalVariableTypeTable' in attributes:
            for start_pc, name, signature, index in self._variable_table(attributes['LocalVariableTypeTable'], pool):
                signatures[(start_pc, name, index)] = signature

        variables = []
        if 'LocalVariableTable' in attributes:
            for start_pc, name, descriptor, index in self._variable_table(attributes['LocalVariableTable'], pool):
                variables.append(LocalVariable(
                    name=name,
                    descriptor=descriptor,
                    signature=signatures.get((start_pc, name, index)),
                    index=index,
                    start_pc=start_pc
                ))
        return tuple(variables)

    def _variable_table(self, data: bytes, pool: _ConstantPool) -> List[Tuple[int, str, str, int]]:
        reader = _ByteReader(data)
        rows = []
        for _ in range(reader.u2()):
            start_pc = reader.u2()
            reader.u2()  # length
            name = pool.utf8(reader.u2())
            type_text = pool.utf8(reader.u2())
            rows.append((start_pc, name, type_text, reader.u2()))
        return rows

    def _annotations(self, attributes: Dict[str, bytes], attribute_name: str,
                     pool: _ConstantPool, visible: bool) -> Tuple[AnnotationNode, ...]:
        if attribute_name not in attributes:
            return ()
        reader = _ByteReader(attributes[attribute_name])
        return tuple(self._annotation(reader, pool, visible) for _ in range(reader.u2()))

    def _parameter_annotations(self, attributes: Dict[str, bytes], attribute_name: str,
                               pool: _ConstantPool, visible: bool) -> List[Tuple[AnnotationNode, ...]]:
        if attribute_name not in attributes:
            return []
        reader = _ByteReader(attributes[attribute_name])
        result = []
        for _ in range(reader.u1()):
            result.append(tuple(self._annotation(reader, pool, visible) for _ in range(reader.u2())))
        return result

    def _annotation(self, reader: _ByteReader, pool: _ConstantPool, visible: bool) -> AnnotationNode:
        type_name = descriptor_to_name(pool.utf8(reader.u2()))
        values = {}
        for _ in range(reader.u2()):
            element_name = pool.utf8(reader.u2())
            values[element_name] = self._element_value(reader, pool, visible)
        return AnnotationNode(type_name=type_name, values=values, visible=visible)

    def _element_value(self, reader: _ByteReader, pool: _ConstantPool, visible: bool) -> Any:
        tag = chr(reader.u1())
        if tag in 'BCDFIJSs':
            value = pool.constant(reader.u2())
            return chr(value) if tag == 'C' else value
        if tag == 'Z':
            return bool(pool.constant(reader.u2()))
        if tag == 'e':
            enum_type = descriptor_to_name(pool.utf8(reader.u2()))
            return EnumValue(enum_type, pool.utf8(reader.u2()))
        if tag == 'c':
            return descriptor_to_name(pool.utf8(reader.u2()))
        if tag == '@':
            return self._annotation(reader, pool, visible)
        if tag == '[':
            return [self._element_value(reader, pool, visible) for _ in range(reader.u2())]
        raise ClassFormatError(f"Unknown annotation element tag {tag!r}")
