"""Exceptions raised by paramkit.

Every error derives from ParamError. Construction errors also derive from
TypeError, matching what Python raises for a bad keyword argument.
"""

from typing import Iterable


class ParamError(Exception):
    """Base class for all paramkit errors."""

    pass


class DuplicateDefinition(ParamError):
    """Raised when a parameter type name is already registered."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(
            f"Parameter type '{type_name}' is already defined. "
            f"Pass replace=True or configure redefinition='replace' to redefine it."
        )


class UnknownField(ParamError, TypeError):
    """Raised when a field name is not declared on a parameter type."""

    def __init__(self, type_name: str, names: Iterable[str]):
        self.type_name = type_name
        self.names = tuple(sorted(names))
        listed = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(f"{type_name} has no field(s) {listed}")


class TypeMismatch(ParamError, TypeError):
    """Raised when an override does not match the declared field type."""

    def __init__(self, type_name: str, field: str, expected: str, received: type):
        self.type_name = type_name
        self.field = field
        self.expected = expected
        self.received = received
        super().__init__(
            f"{type_name}.{field} expects {expected}, got {received.__name__}"
        )


class MissingField(ParamError, TypeError):
    """Raised when a field declared without a default is not supplied."""

    def __init__(self, type_name: str, names: Iterable[str]):
        self.type_name = type_name
        self.names = tuple(sorted(names))
        listed = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(f"{type_name} requires keyword argument(s) {listed}")


class MalformedDeclaration(ParamError, ValueError):
    """Raised when a declaration list cannot be turned into a type."""

    pass


class FrozenInstance(ParamError, AttributeError):
    """Raised on assignment to a field of a parameter instance."""

    pass


class RewriteError(ParamError, ValueError):
    """Raised when a name-substitution rewrite cannot be applied."""

    pass


class InstanceShadowed(RewriteError):
    """Raised when the instance name is rebound where fields are rewritten."""

    def __init__(self, instance: str, line: int | None = None):
        self.instance = instance
        self.line = line
        where = f" at line {line}" if line is not None else ""
        super().__init__(
            f"'{instance}' is rebound{where} in a scope that references its fields"
        )
