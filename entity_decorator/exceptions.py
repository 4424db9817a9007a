"""
Error hierarchy for entity-decorator.

Every error raised by this package derives from EntityDecoratorError and also
from the closest builtin exception, so callers can catch either.
"""

from __future__ import annotations


class EntityDecoratorError(Exception):
    """Base class for all entity-decorator errors."""


class MethodNotFound(EntityDecoratorError, AttributeError):
    """
    Raised when a dynamically dispatched method matches no naming convention
    and the wrapped record has nothing to proxy to.
    """

    def __init__(self, class_name: str, method_name: str, kind: str = "instance") -> None:
        self.class_name = class_name
        self.method_name = method_name
        super().__init__(f"{class_name} has no {kind} method called {method_name}")


class UnsupportedArgument(EntityDecoratorError, TypeError):
    """Raised when a finder receives a value it cannot turn into a condition."""


class UnknownAttributeError(EntityDecoratorError, LookupError):
    """Raised when a name is neither a property nor a field of an entity type."""

    def __init__(self, entity_type: str, name: str) -> None:
        self.entity_type = entity_type
        self.name = name
        super().__init__(f"Unknown data property or field '{name}' on entity type '{entity_type}'")


class UnknownEntityTypeError(EntityDecoratorError, LookupError):
    """Raised when no schema is registered for an entity type."""


class UnknownDecoratorError(EntityDecoratorError, LookupError):
    """Raised when a decorator class is referenced by a name nobody declared."""


class FinderConsumedError(EntityDecoratorError, RuntimeError):
    """Raised when a finder is executed a second time."""


__all__ = [
    "EntityDecoratorError",
    "FinderConsumedError",
    "MethodNotFound",
    "UnknownAttributeError",
    "UnknownDecoratorError",
    "UnknownEntityTypeError",
    "UnsupportedArgument",
]
