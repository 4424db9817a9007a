"""
Static schema descriptors for entity types.

Each entity type is described once by an EntitySchema: its identifier key, and
for every named attribute whether it is a plain property (scalar, stored as is)
or a structured field (stored as a list of deltas). Finders consult the schema
to pick property or field query primitives; wrappers consult it to read and
write values.

A module-level registry ships the built-in types. Decorator subclasses extend
it with their fields when they are declared.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from entity_decorator.exceptions import UnknownAttributeError, UnknownEntityTypeError

# The privileged entity type: its own id key and default values for new records.
NODE_TYPE = "node"


class AttributeKind(str, Enum):
    PROPERTY = "property"
    FIELD = "field"


@dataclass(frozen=True)
class AttributeSpec:
    """
    Description of one named attribute of an entity type.

    Attributes
    ----------
    name : str
        Name used by callers (finders, get/set).
    kind : AttributeKind
        Property or field.
    multiple : bool
        Fields only: whether reads return every delta instead of the first.
    target_type : str | None
        Entity type referenced by this attribute. The stored value is the
        target's id; reads load the target record.
    column : str | None
        Storage key when it differs from `name` (e.g. `author` kept in `uid`).
    """

    name: str
    kind: AttributeKind = AttributeKind.PROPERTY
    multiple: bool = False
    target_type: Optional[str] = None
    column: Optional[str] = None

    @property
    def key(self) -> str:
        return self.column or self.name

    @property
    def is_property(self) -> bool:
        return self.kind is AttributeKind.PROPERTY

    @property
    def is_reference(self) -> bool:
        return self.target_type is not None


def prop(name: str, **kwargs: Any) -> AttributeSpec:
    return AttributeSpec(name, AttributeKind.PROPERTY, **kwargs)


def field_(name: str, **kwargs: Any) -> AttributeSpec:
    return AttributeSpec(name, AttributeKind.FIELD, **kwargs)


@dataclass(frozen=True)
class EntitySchema:
    entity_type: str
    id_key: str = "id"
    bundle_key: str = "type"
    attributes: Dict[str, AttributeSpec] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        entity_type: str,
        id_key: str = "id",
        attributes: Iterable[AttributeSpec] = (),
    ) -> "EntitySchema":
        specs = {id_key: prop(id_key)}
        specs.update({spec.name: spec for spec in attributes})
        return cls(entity_type=entity_type, id_key=id_key, attributes=specs)

    def has(self, name: str) -> bool:
        return name in self.attributes or name == self.bundle_key

    def attribute(self, name: str) -> AttributeSpec:
        if name == self.bundle_key and name not in self.attributes:
            return prop(name)
        try:
            return self.attributes[name]
        except KeyError:
            raise UnknownAttributeError(self.entity_type, name) from None

    def is_property(self, name: str) -> bool:
        return self.attribute(name).is_property

    def is_field(self, name: str) -> bool:
        return not self.is_property(name)

    def property_names(self) -> List[str]:
        return [name for name, spec in self.attributes.items() if spec.is_property]

    def field_names(self) -> List[str]:
        return [name for name, spec in self.attributes.items() if not spec.is_property]

    def with_attributes(self, specs: Iterable[AttributeSpec]) -> "EntitySchema":
        merged = dict(self.attributes)
        merged.update({spec.name: spec for spec in specs})
        return replace(self, attributes=merged)

    def defaults(self) -> Dict[str, Any]:
        """Initial values for a brand-new record of this type."""
        if self.entity_type != NODE_TYPE:
            return {}
        now = int(time.time())
        return {
            "status": 1,
            "promote": 1,
            "sticky": 0,
            "uid": 0,
            "created": now,
            "changed": now,
        }


class SchemaRegistry:
    """
    Registry of entity schemas keyed by entity type.
    """

    def __init__(self, schemas: Iterable[EntitySchema] = ()) -> None:
        self._schemas: Dict[str, EntitySchema] = {}
        for schema in schemas:
            self.register(schema)

    def register(self, schema: EntitySchema) -> EntitySchema:
        self._schemas[schema.entity_type] = schema
        return schema

    def get(self, entity_type: str) -> EntitySchema:
        try:
            return self._schemas[entity_type]
        except KeyError:
            raise UnknownEntityTypeError(
                f"No schema registered for entity type '{entity_type}'. "
                f"Known: {', '.join(sorted(self._schemas))}"
            ) from None

    def extend(self, entity_type: str, specs: Iterable[AttributeSpec]) -> EntitySchema:
        """Add or replace attributes on a registered type, creating it if needed."""
        specs = list(specs)
        if entity_type in self._schemas:
            schema = self._schemas[entity_type].with_attributes(specs)
        else:
            schema = EntitySchema.build(entity_type, attributes=specs)
        return self.register(schema)

    def entity_types(self) -> List[str]:
        return sorted(self._schemas)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._schemas


def builtin_schemas() -> List[EntitySchema]:
    return [
        EntitySchema.build(
            NODE_TYPE,
            id_key="nid",
            attributes=[
                prop("vid"),
                prop("title"),
                prop("language"),
                prop("status"),
                prop("promote"),
                prop("sticky"),
                prop("created"),
                prop("changed"),
                prop("uid"),
                prop("author", column="uid", target_type="user"),
            ],
        ),
        EntitySchema.build(
            "user",
            id_key="uid",
            attributes=[
                prop("name"),
                prop("mail"),
                prop("status"),
                prop("created"),
            ],
        ),
        EntitySchema.build(
            "taxonomy_term",
            id_key="tid",
            attributes=[
                prop("vid"),
                prop("name"),
                prop("description"),
                prop("weight"),
                prop("parent", target_type="taxonomy_term"),
            ],
        ),
        EntitySchema.build(
            "entity",
            attributes=[
                prop("label"),
                prop("created"),
                prop("changed"),
            ],
        ),
    ]


default_registry = SchemaRegistry(builtin_schemas())


__all__ = [
    "AttributeKind",
    "AttributeSpec",
    "EntitySchema",
    "NODE_TYPE",
    "SchemaRegistry",
    "builtin_schemas",
    "default_registry",
    "field_",
    "prop",
]
