from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import CompiledMethod
from route_atlas.models.errors import SignatureError

PRIMITIVES = {
    'Z': 'boolean',
    'B': 'byte',
    'C': 'char',
    'S': 'short',
    'I': 'int',
    'F': 'float',
    'D': 'double',
    'J': 'long',
    'V': 'void'
}

# Slots taken by a primitive in the local-variable array.
WIDE_PRIMITIVES = {'long', 'double'}


@dataclass(frozen=True)
class JvmType:
    """Canonical type tree decoded from a descriptor or generic signature.

    ``kind`` is one of ``primitive``, ``class``, ``array``, ``variable`` or
    ``wildcard``. Wildcards carry a ``variance`` of ``*``, ``+`` or ``-``
    and, unless unbounded, a ``bound``.
    """
    kind: str
    name: str = ''
    arguments: Tuple['JvmType', ...] = ()
    component: Optional['JvmType'] = None
    bound: Optional['JvmType'] = None
    variance: str = ''

    @property
    def erasure(self) -> str:
        if self.kind == 'array':
            return self.component.erasure + '[]'
        if self.kind == 'wildcard':
            return self.bound.erasure if self.bound and self.variance == '+' else 'java.lang.Object'
        if self.kind == 'variable':
            return 'java.lang.Object'
        return self.name

    @property
    def slot_size(self) -> int:
        return 2 if self.kind == 'primitive' and self.name in WIDE_PRIMITIVES else 1

    def unwrap(self) -> 'JvmType':
        """Strip a wildcard down to its bound (``? super T`` -> ``T``)."""
        if self.kind != 'wildcard':
            return self
        if self.bound is None:
            return JvmType('class', 'java.lang.Object')
        return self.bound

    def render(self) -> str:
        if self.kind == 'array':
            return self.component.render() + '[]'
        if self.kind == 'wildcard':
            if self.variance == '+':
                return f"? extends {self.bound.render()}"
            if self.variance == '-':
                return f"? super {self.bound.render()}"
            return '?'
        if self.arguments:
            return f"{self.name}<{', '.join(arg.render() for arg in self.arguments)}>"
        return self.name


@dataclass(frozen=True)
class MethodType:
    parameters: Tuple[JvmType, ...]
    return_type: JvmType
    type_parameters: Tuple[str, ...] = ()


class _SignatureReader:
    """Recursive-descent reader over the JVM descriptor/signature grammar."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def fail(self, reason: str):
        raise SignatureError(self.text, self.pos, reason)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def expect(self, char: str):
        if self.peek() != char:
            self.fail(f"Expected {char!r}")
        self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def identifier(self, stops: str) -> str:
        start = self.pos
        while not self.at_end() and self.text[self.pos] not in stops:
            self.pos += 1
        if start == self.pos:
            self.fail("Expected identifier")
        return self.text[start:self.pos]

    def type_signature(self, allow_void: bool = False) -> JvmType:
        char = self.peek()
        if char in PRIMITIVES:
            if char == 'V' and not allow_void:
                self.fail("Unexpected void")
            self.pos += 1
            return JvmType('primitive', PRIMITIVES[char])
        return self.reference_type()

    def reference_type(self) -> JvmType:
        char = self.peek()
        if char == 'L':
            return self.class_type()
        if char == 'T':
            self.pos += 1
            name = self.identifier(';')
            self.expect(';')
            return JvmType('variable', name)
        if char == '[':
            self.pos += 1
            return JvmType('array', component=self.type_signature())
        self.fail("Expected reference type")

    def class_type(self) -> JvmType:
        self.expect('L')
        name = self.identifier('<;.').replace('/', '.')
        arguments = self.type_arguments() if self.peek() == '<' else ()
        # Inner class of a parameterized outer class: Outer<TT;>.Inner<TU;>;
        while self.peek() == '.':
            self.pos += 1
            name = f"{name}${self.identifier('<;.')}"
            arguments = self.type_arguments() if self.peek() == '<' else ()
        self.expect(';')
        return JvmType('class', name, arguments)

    def type_arguments(self) -> Tuple[JvmType, ...]:
        self.expect('<')
        arguments = []
        while self.peek() != '>':
            if self.at_end():
                self.fail("Unterminated type arguments")
            char = self.peek()
            if char == '*':
                self.pos += 1
                arguments.append(JvmType('wildcard', variance='*'))
            elif char in '+-':
                self.pos += 1
                arguments.append(JvmType('wildcard', bound=self.reference_type(), variance=char))
            else:
                arguments.append(self.reference_type())
        self.expect('>')
        return tuple(arguments)

    def type_parameters(self) -> Tuple[str, ...]:
        self.expect('<')
        names = []
        while self.peek() != '>':
            if self.at_end():
                self.fail("Unterminated type parameters")
            names.append(self.identifier(':'))
            self.expect(':')
            # Class bound may be empty, interface bounds follow with ':'.
            if self.peek() not in ':>':
                self.reference_type()
            while self.peek() == ':':
                self.pos += 1
                self.reference_type()
        self.expect('>')
        return tuple(names)

    def method(self) -> MethodType:
        type_parameters = self.type_parameters() if self.peek() == '<' else ()
        self.expect('(')
        parameters = []
        while self.peek() != ')':
            if self.at_end():
                self.fail("Unterminated parameter list")
            parameters.append(self.type_signature())
        self.expect(')')
        return_type = self.type_signature(allow_void=True)
        while self.peek() == '^':
            self.pos += 1
            self.reference_type()
        self.done()
        return MethodType(tuple(parameters), return_type, type_parameters)

    def done(self):
        if not self.at_end():
            self.fail("Trailing characters")


class BaseTypeDecoder(ABC):
    """Abstract base class for decoders of compiled type metadata."""

    @abstractmethod
    def decode(self, descriptor: str, signature: Optional[str] = None) -> str:
        """Decode a variable or field type to its canonical name."""
        pass


class JvmSignatureDecoder(BaseTypeDecoder):
    """Decodes JVM descriptors and generic signatures to canonical type names."""

    def __init__(self, config: ExtractorConfig):
        self.config = config

    def parse_type(self, text: str) -> JvmType:
        reader = _SignatureReader(text)
        result = reader.type_signature(allow_void=True)
        reader.done()
        return result

    def parse_method(self, descriptor: str, signature: Optional[str] = None) -> MethodType:
        return _SignatureReader(signature or descriptor).method()

    def decode_type(self, descriptor: str, signature: Optional[str] = None) -> JvmType:
        """Prefer the generic signature, it keeps element types the descriptor erased."""
        return self.parse_type(signature or descriptor)

    def decode(self, descriptor: str, signature: Optional[str] = None) -> str:
        return self.decode_type(descriptor, signature).render()

    def is_primitive(self, type_name: str) -> bool:
        return type_name in self.config.primitive_types

    def ends_with_continuation(self, method: CompiledMethod) -> bool:
        parameters = self.parse_method(method.descriptor).parameters
        return bool(parameters) and parameters[-1].erasure == self.config.continuation_type

    def return_type(self, method: CompiledMethod) -> str:
        """Decode the logical return type of a handler method.

        Suspending functions return ``Object`` and carry their real result
        type as the generic argument of the trailing continuation parameter,
        e.g. ``Lkotlin/coroutines/Continuation<-Ljava/lang/String;>;``.
        """
        if method.signature and self.ends_with_continuation(method):
            continuation = self.parse_method(method.descriptor, method.signature).parameters[-1]
            if continuation.arguments:
                return continuation.arguments[0].unwrap().render()
        return self.parse_method(method.descriptor, method.signature).return_type.render()


def descriptor_to_name(descriptor: str) -> str:
    """``Lio/jooby/annotations/GET;`` -> ``io.jooby.annotations.GET``."""
    if descriptor.startswith('L') and descriptor.endswith(';'):
        return descriptor[1:-1].replace('/', '.')
    if descriptor in PRIMITIVES:
        return PRIMITIVES[descriptor]
    if descriptor.startswith('['):
        return descriptor_to_name(descriptor[1:]) + '[]'
    return descriptor.replace('/', '.')
