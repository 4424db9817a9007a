"""
Field query builder.

A FieldQuery accumulates conditions and orderings against one entity type and
bundle. It carries no execution logic: stores interpret it in
`EntityStore.execute_query`. Finders build one per invocation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from entity_decorator.domain.schema import AttributeKind
from entity_decorator.exceptions import UnsupportedArgument


class Operator(str, Enum):
    EQ = "="
    IN = "IN"


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedArgument(
                f"Ordering direction must be ASC or DESC, got {value!r}"
            ) from None


@dataclass(frozen=True)
class Condition:
    name: str
    value: Any
    operator: Operator
    kind: AttributeKind
    key: str

    def values(self) -> Tuple[Any, ...]:
        """Accepted values, whatever the operator."""
        if self.operator is Operator.IN:
            return tuple(self.value)
        return (self.value,)


@dataclass(frozen=True)
class Ordering:
    name: str
    direction: Direction
    kind: AttributeKind
    key: str

    @property
    def descending(self) -> bool:
        return self.direction is Direction.DESC


@dataclass
class FieldQuery:
    """
    Mutable query builder scoped to one entity type and bundle.

    `key` on conditions and orderings is the storage key of the attribute,
    which differs from `name` when a property is stored under another column.
    """

    entity_type: str
    bundle: Optional[str] = None
    conditions: List[Condition] = field(default_factory=list)
    orderings: List[Ordering] = field(default_factory=list)

    def property_condition(
        self, name: str, value: Any, operator: Operator = Operator.EQ, key: Optional[str] = None
    ) -> "FieldQuery":
        self.conditions.append(
            Condition(name, value, Operator(operator), AttributeKind.PROPERTY, key or name)
        )
        return self

    def field_condition(
        self, name: str, value: Any, operator: Operator = Operator.EQ, key: Optional[str] = None
    ) -> "FieldQuery":
        self.conditions.append(
            Condition(name, value, Operator(operator), AttributeKind.FIELD, key or name)
        )
        return self

    def property_order_by(
        self, name: str, direction: "str | Direction" = Direction.ASC, key: Optional[str] = None
    ) -> "FieldQuery":
        self.orderings.append(
            Ordering(name, Direction.parse(direction), AttributeKind.PROPERTY, key or name)
        )
        return self

    def field_order_by(
        self, name: str, direction: "str | Direction" = Direction.ASC, key: Optional[str] = None
    ) -> "FieldQuery":
        self.orderings.append(
            Ordering(name, Direction.parse(direction), AttributeKind.FIELD, key or name)
        )
        return self


__all__ = ["Condition", "Direction", "FieldQuery", "Operator", "Ordering"]
