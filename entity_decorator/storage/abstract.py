"""
Abstract storage interfaces for entity-decorator.

Concrete backends (in-memory, PostgreSQL) implement the EntityStore protocol.
It is the whole capability set decorators and finders rely on: create, load,
save and delete records, describe entity types, and run field queries that
return matching ids grouped by entity type.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from entity_decorator.domain.models import Entity
from entity_decorator.domain.query import FieldQuery
from entity_decorator.domain.schema import EntitySchema, SchemaRegistry, default_registry

QueryResult = Dict[str, List[Any]]


@runtime_checkable
class EntityStore(Protocol):
    """
    Common interface all storage backends must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    registry : SchemaRegistry
        Schemas of the entity types the store holds.
    """

    name: str
    registry: SchemaRegistry

    def schema(self, entity_type: str) -> EntitySchema:
        """Return the static schema of an entity type."""
        ...

    def create(self, entity_type: str, bundle: Optional[str] = None) -> Entity:
        """Return a new, unsaved record prepared with the type's defaults."""
        ...

    def load(self, entity_type: str, entity_id: Any) -> Optional[Entity]:
        """Load one record, or None when it does not exist."""
        ...

    def load_multiple(self, entity_type: str, entity_ids: Iterable[Any]) -> List[Entity]:
        """Load records in the order of `entity_ids`, skipping missing ones."""
        ...

    def save(self, entity: Entity) -> Entity:
        """
        Persist a record, assigning an id when it is new.

        Returns
        -------
        Entity
            The record passed in, carrying its identifier.
        """
        ...

    def delete(self, entity_type: str, entity_id: Any) -> None:
        """Delete a record. Deleting a missing record is a no-op."""
        ...

    def execute_query(self, query: FieldQuery) -> QueryResult:
        """
        Run a field query.

        Returns
        -------
        dict[str, list]
            Matching ids keyed by entity type, in result order. Empty when
            nothing matches.
        """
        ...


class AbstractEntityStore(abc.ABC):
    """
    ABC helper for class-based stores.

    Provides schema lookup and new-record preparation; subclasses set `name`
    and implement persistence and query execution.
    """

    name: str

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        self.registry = registry or default_registry

    def schema(self, entity_type: str) -> EntitySchema:
        return self.registry.get(entity_type)

    def create(self, entity_type: str, bundle: Optional[str] = None) -> Entity:
        schema = self.schema(entity_type)
        return Entity(entity_type=entity_type, type=bundle, **schema.defaults())

    def load(self, entity_type: str, entity_id: Any) -> Optional[Entity]:
        loaded = self.load_multiple(entity_type, [entity_id])
        return loaded[0] if loaded else None

    @abc.abstractmethod
    def load_multiple(self, entity_type: str, entity_ids: Iterable[Any]) -> List[Entity]:
        raise NotImplementedError

    @abc.abstractmethod
    def save(self, entity: Entity) -> Entity:
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, entity_type: str, entity_id: Any) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def execute_query(self, query: FieldQuery) -> QueryResult:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "AbstractEntityStore",
    "EntityStore",
    "QueryResult",
]
