"""
In-process entity store.

Keeps records in per-type dictionaries and evaluates field queries in Python.
Records are copied on the way in and out, so callers see the same isolation a
database-backed store gives them: nothing changes in storage until `save`.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from entity_decorator.domain.models import Entity
from entity_decorator.domain.query import Condition, FieldQuery, Ordering
from entity_decorator.domain.schema import AttributeKind, SchemaRegistry
from entity_decorator.storage.abstract import AbstractEntityStore, QueryResult
from entity_decorator.utils.logging import get_logger

log = get_logger(__name__)


def _deltas(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _sort_key(value: Any) -> tuple:
    # Missing values sort last ascending, first descending, like Postgres.
    return (value is None, value)


class MemoryEntityStore(AbstractEntityStore):
    """
    Dictionary-backed store with sequential ids per entity type.
    """

    name: str = "memory"

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        super().__init__(registry)
        self._records: Dict[str, Dict[Any, Entity]] = defaultdict(dict)
        self._next_id: Dict[str, int] = defaultdict(lambda: 1)

    def load_multiple(self, entity_type: str, entity_ids: Iterable[Any]) -> List[Entity]:
        table = self._records[entity_type]
        return [
            table[entity_id].model_copy(deep=True)
            for entity_id in entity_ids
            if entity_id in table
        ]

    def save(self, entity: Entity) -> Entity:
        schema = self.schema(entity.entity_type)
        entity_id = entity.id_value(schema.id_key)
        if entity_id is None:
            entity_id = self._next_id[entity.entity_type]
            setattr(entity, schema.id_key, entity_id)
        if isinstance(entity_id, int):
            self._next_id[entity.entity_type] = max(self._next_id[entity.entity_type], entity_id + 1)

        self._records[entity.entity_type][entity_id] = entity.model_copy(deep=True)
        log.debug(
            "Saved entity",
            extra={"entity_type": entity.entity_type, "entity_id": entity_id, "store": self.name},
        )
        return entity

    def delete(self, entity_type: str, entity_id: Any) -> None:
        removed = self._records[entity_type].pop(entity_id, None)
        log.info(
            "Deleted entity",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "existed": removed is not None,
                "store": self.name,
            },
        )

    def _matches(self, entity: Entity, condition: Condition) -> bool:
        accepted = condition.values()
        stored = getattr(entity, condition.key, None)
        if condition.kind is AttributeKind.PROPERTY:
            return stored in accepted
        return any(delta in accepted for delta in _deltas(stored))

    def _ordering_value(self, entity: Entity, ordering: Ordering) -> Any:
        stored = getattr(entity, ordering.key, None)
        if ordering.kind is AttributeKind.PROPERTY:
            return stored
        deltas = _deltas(stored)
        return deltas[0] if deltas else None

    def execute_query(self, query: FieldQuery) -> QueryResult:
        schema = self.schema(query.entity_type)
        candidates = [
            entity
            for entity in self._records[query.entity_type].values()
            if query.bundle is None or entity.type == query.bundle
        ]
        matched = [
            entity
            for entity in candidates
            if all(self._matches(entity, condition) for condition in query.conditions)
        ]
        # Stable sorts applied last-to-first compose into a multi-key ordering.
        for ordering in reversed(query.orderings):
            matched.sort(
                key=lambda entity: _sort_key(self._ordering_value(entity, ordering)),
                reverse=ordering.descending,
            )

        log.debug(
            "Executed field query",
            extra={
                "entity_type": query.entity_type,
                "bundle": query.bundle,
                "conditions": len(query.conditions),
                "orderings": len(query.orderings),
                "matches": len(matched),
                "store": self.name,
            },
        )
        if not matched:
            return {}
        return {query.entity_type: [entity.id_value(schema.id_key) for entity in matched]}

    def clear(self) -> None:
        """Drop every stored record and reset id sequences."""
        self._records.clear()
        self._next_id.clear()


__all__ = ["MemoryEntityStore"]
