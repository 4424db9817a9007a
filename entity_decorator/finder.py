"""
Finder: builds and runs a field query for one entity type and bundle, and maps
every matching record into the decorator class that asked for it.

Usage:
    articles = Article.find_by("status", [1]).order_by("created", "DESC").execute()
    latest = Article.find_first_by("title", "Hello")

A finder is single use: build it, execute it once, drop it.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Type, Union

from entity_decorator.config import get_settings
from entity_decorator.dispatch import resolve_finder
from entity_decorator.domain.query import Direction, FieldQuery, Operator
from entity_decorator.exceptions import FinderConsumedError, UnsupportedArgument
from entity_decorator.storage import EntityStore, get_store
from entity_decorator.utils.logging import get_logger

if TYPE_CHECKING:
    from entity_decorator.decorator import DecoratedEntity

log = get_logger(__name__)

SCALAR_TYPES = (str, bytes, int, float, bool, Decimal)


def _is_collection(value: Any) -> bool:
    # Strings and bytes are scalars here; mappings are ambiguous and rejected.
    return isinstance(value, Collection) and not isinstance(
        value, (str, bytes, bytearray, Mapping)
    )


class EntityFinder:
    """
    Query builder bound to a decorator class, bundle and entity type.
    """

    def __init__(
        self,
        cls: Type["DecoratedEntity"],
        bundle: Optional[str],
        entity_type: str,
        store: Optional[EntityStore] = None,
    ) -> None:
        self.cls = cls
        self.bundle = bundle
        self.entity_type = entity_type
        self.store = store or get_store()
        self.schema = self.store.schema(entity_type)
        self.query = FieldQuery(entity_type=entity_type, bundle=bundle)
        self._consumed = False

    def find_by(self, field_name: str, value: Any) -> "EntityFinder":
        """
        Restrict results to records where `field_name` matches `value`.

        Parameters
        ----------
        field_name : str
            Property or field to match on.
        value : scalar | collection
            A scalar matches by equality. Any other sized container (list,
            tuple, set, range, dict views, deques) matches by membership; an
            empty one adds no condition. Mappings are not accepted.

        Raises
        ------
        UnsupportedArgument
            If `value` is neither a scalar nor a collection.
        """
        if _is_collection(value):
            operator, value = Operator.IN, tuple(value)
        elif isinstance(value, SCALAR_TYPES):
            operator = Operator.EQ
        else:
            raise UnsupportedArgument(
                f"{type(self).__name__} can only take scalars and collections as arguments, "
                f"got {type(value).__name__}"
            )

        if operator is Operator.IN and not value:
            if get_settings().strict_empty_filters:
                raise UnsupportedArgument(f"Empty collection given as filter on '{field_name}'")
            log.debug(
                "Skipping empty filter",
                extra={"entity_type": self.entity_type, "field": field_name},
            )
            return self

        spec = self.schema.attribute(field_name)
        if spec.is_property:
            self.query.property_condition(field_name, value, operator, key=spec.key)
        else:
            self.query.field_condition(field_name, value, operator, key=spec.key)
        return self

    def order_by(self, field_name: str, direction: Union[str, Direction] = Direction.ASC) -> "EntityFinder":
        spec = self.schema.attribute(field_name)
        if spec.is_property:
            self.query.property_order_by(field_name, direction, key=spec.key)
        else:
            self.query.field_order_by(field_name, direction, key=spec.key)
        return self

    def find_first_by(self, field_name: str, value: Any) -> Optional["DecoratedEntity"]:
        return self.find_by(field_name, value).first()

    def first(self) -> Optional["DecoratedEntity"]:
        """Run the query and return only the first decorated match, or None."""
        return self._execute(first_only=True)

    def execute(self) -> List["DecoratedEntity"]:
        """Run the query and return decorated results in store order."""
        return self._execute(first_only=False)

    def _execute(self, first_only: bool = False) -> Any:
        if self._consumed:
            raise FinderConsumedError(
                f"{type(self).__name__} for {self.entity_type}/{self.bundle} was already executed"
            )
        self._consumed = True

        result = self.store.execute_query(self.query)
        ids = result.get(self.entity_type, [])
        log.debug(
            "Finder executed",
            extra={
                "decorator": self.cls.__name__,
                "entity_type": self.entity_type,
                "bundle": self.bundle,
                "matches": len(ids),
                "first_only": first_only,
            },
        )

        if first_only:
            if not ids:
                return None
            entity = self.store.load(self.entity_type, ids[0])
            return self.cls.build_from_entity(entity) if entity is not None else None

        entities = self.store.load_multiple(self.entity_type, ids)
        return [self.cls.build_from_entity(entity) for entity in entities]

    def __getattr__(self, name: str) -> Callable[[Any], Any]:
        resolved = resolve_finder(name)
        if resolved is None:
            raise AttributeError(f"{type(self).__name__} has no method called {name}")
        method = getattr(self, resolved.action)
        return lambda value: method(resolved.attribute, value)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.cls.__name__} {self.entity_type}/{self.bundle} "
            f"conditions={len(self.query.conditions)} orderings={len(self.query.orderings)}>"
        )


__all__ = ["EntityFinder"]
