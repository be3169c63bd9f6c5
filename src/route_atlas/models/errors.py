from typing import Optional


class RouteAtlasError(Exception):
    """Base class for every error raised while extracting routes."""


class TypeNotFound(RouteAtlasError):
    """A referenced type (mount target or superclass) is not on the classpath."""

    def __init__(self, type_name: str, message: Optional[str] = None):
        self.type_name = type_name
        super().__init__(message or f"Type not found: {type_name}")


class HierarchyCycle(TypeNotFound):
    """The superclass chain of a type loops back on itself."""

    def __init__(self, type_name: str, superclass: str):
        self.superclass = superclass
        super().__init__(type_name, f"Cyclic class hierarchy: {type_name} -> {superclass}")


class ParameterTypeNotFound(RouteAtlasError):
    """A formal parameter has no entry in the method's local-variable table.

    Usually means the classes were compiled without debug information
    (``javac -g`` / ``-parameters``).
    """

    def __init__(self, method: str, parameter: str):
        self.method = method
        self.parameter = parameter
        super().__init__(f"Parameter type not found on method: {method}, parameter: {parameter}")


class ClassFormatError(RouteAtlasError):
    """Class file bytes could not be decoded."""


class SignatureError(RouteAtlasError):
    """A type descriptor or generic signature is malformed."""

    def __init__(self, text: str, position: int, reason: str):
        self.text = text
        self.position = position
        super().__init__(f"{reason} at {position} in {text!r}")
