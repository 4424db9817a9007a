"""
Domain package for entity-decorator.

Exports the raw record model, the static schema descriptors and the query
builder. Keep this package focused on data definitions; storage backends
interpret these types.
"""

from entity_decorator.domain.models import Entity
from entity_decorator.domain.query import Condition, Direction, FieldQuery, Operator, Ordering
from entity_decorator.domain.schema import (
    NODE_TYPE,
    AttributeKind,
    AttributeSpec,
    EntitySchema,
    SchemaRegistry,
    default_registry,
    field_,
    prop,
)

__all__ = [
    "AttributeKind",
    "AttributeSpec",
    "Condition",
    "Direction",
    "Entity",
    "EntitySchema",
    "FieldQuery",
    "NODE_TYPE",
    "Operator",
    "Ordering",
    "SchemaRegistry",
    "default_registry",
    "field_",
    "prop",
]
