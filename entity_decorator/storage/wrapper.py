"""
Field-access abstraction over raw records.

EntityWrapper reads and writes named attributes of one Entity through the
entity type's static schema, so callers never care whether a name is a plain
property or a multi-delta field, or whether it references another record.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, runtime_checkable

from entity_decorator.domain.models import Entity
from entity_decorator.domain.schema import AttributeSpec, EntitySchema
from entity_decorator.storage.abstract import EntityStore


@runtime_checkable
class FieldAccessible(Protocol):
    """Uniform get/set/has access to named attributes."""

    def get(self, name: str) -> Any:
        ...

    def set(self, name: str, value: Any) -> None:
        ...

    def has(self, name: str) -> bool:
        ...


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class EntityWrapper:
    """
    Schema-driven accessor bound to one record and the store it lives in.
    """

    def __init__(self, store: EntityStore, entity: Entity) -> None:
        self.store = store
        self.entity = entity

    @property
    def schema(self) -> EntitySchema:
        return self.store.schema(self.entity.entity_type)

    def has(self, name: str) -> bool:
        return self.schema.has(name)

    def get(self, name: str) -> Any:
        spec = self.schema.attribute(name)
        raw = getattr(self.entity, spec.key, None)

        if spec.is_property:
            if spec.is_reference:
                return self._load_one(spec, raw)
            return raw

        deltas = _as_list(raw)
        if not spec.multiple:
            deltas = deltas[:1]
        if spec.is_reference:
            deltas = [self._load_delta(spec, delta) for delta in deltas]
        if spec.multiple:
            return deltas
        return deltas[0] if deltas else None

    def set(self, name: str, value: Any) -> None:
        spec = self.schema.attribute(name)

        if spec.is_property:
            stored = self._reference_id(spec, value) if spec.is_reference else value
        else:
            deltas = _as_list(value) if spec.multiple else ([] if value is None else [value])
            if spec.is_reference:
                deltas = [self._reference_id(spec, delta) for delta in deltas]
            stored = deltas

        setattr(self.entity, spec.key, stored)

    def value(self) -> Entity:
        return self.entity

    def identifier(self) -> Any:
        return self.entity.id_value(self.schema.id_key)

    def save(self) -> Entity:
        return self.store.save(self.entity)

    def delete(self) -> None:
        self.store.delete(self.entity.entity_type, self.identifier())

    def _load_one(self, spec: AttributeSpec, target_id: Any) -> Optional[Entity]:
        if target_id is None:
            return None
        return self.store.load(spec.target_type, target_id)

    def _load_delta(self, spec: AttributeSpec, target_id: Any) -> Any:
        # Dangling references keep their stored id in place.
        target = self._load_one(spec, target_id)
        return target_id if target is None else target

    def _reference_id(self, spec: AttributeSpec, value: Any) -> Any:
        # Decorators expose their record as `.entity`.
        entity = value.entity if isinstance(getattr(value, "entity", None), Entity) else value
        if isinstance(entity, Entity):
            return entity.id_value(self.store.schema(spec.target_type).id_key)
        return entity


__all__ = ["EntityWrapper", "FieldAccessible"]
