"""
Decorator base for typed entity wrappers.

Subclasses declare which entity type and bundle they wrap, and optionally the
fields that bundle carries:

    class Article(DecoratedEntity):
        entity_type = "node"
        bundle = "article"
        attributes = (field_("field_tags", multiple=True, target_type="taxonomy_term"),)

    article = Article.find(42)
    article.set_title("Hello")
    article.save()
    tags = article.get_decorated("field_tags", Tag)
    published = Article.find_by_status(1).order_by("created", "DESC").execute()

Instances hold one raw Entity by reference. Undeclared attributes read and
write straight through to that record, so a decorator can stand in for the raw
record wherever plain attribute access is used.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Type, Union

from entity_decorator.dispatch import resolve_accessor, resolve_finder
from entity_decorator.domain.models import Entity
from entity_decorator.domain.schema import AttributeSpec, default_registry
from entity_decorator.exceptions import (
    EntityDecoratorError,
    MethodNotFound,
    UnknownDecoratorError,
)
from entity_decorator.finder import EntityFinder
from entity_decorator.storage import EntityStore, EntityWrapper, get_store
from entity_decorator.utils.logging import get_logger

log = get_logger(__name__)

# Instance attributes kept on the decorator itself; everything else undeclared
# belongs to the wrapped record.
_LOCAL_ATTRIBUTES = frozenset({"entity"})


class DecoratedEntityMeta(type):
    """Resolves `find_by_<name>` / `find_first_by_<name>` on decorator classes."""

    def __getattr__(cls, name: str) -> Callable[[Any], Any]:
        resolved = resolve_finder(name)
        if resolved is None:
            raise MethodNotFound(cls.__name__, name, kind="static")
        method = getattr(cls, resolved.action)
        return lambda value: method(resolved.attribute, value)


class DecoratedEntity(metaclass=DecoratedEntityMeta):
    """
    Typed facade over one raw record.

    Attributes
    ----------
    entity_type : str
        Entity type wrapped by the subclass, e.g. "node".
    bundle : str | None
        Bundle within the entity type, e.g. "article".
    store : EntityStore | None
        Store for this subclass; defaults to the process-wide store.
    attributes : sequence of AttributeSpec
        Attributes added to the entity type's schema when the subclass is declared.
    """

    entity_type: ClassVar[Optional[str]] = None
    bundle: ClassVar[Optional[str]] = None
    store: ClassVar[Optional[EntityStore]] = None
    attributes: ClassVar[Sequence[AttributeSpec]] = ()

    _registry: ClassVar[Dict[str, Type["DecoratedEntity"]]] = {}

    entity: Entity

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if register:
            DecoratedEntity._registry[cls.__name__] = cls
        declared = cls.__dict__.get("attributes")
        if declared and cls.entity_type:
            registry = getattr(cls.store, "registry", default_registry)
            registry.extend(cls.entity_type, declared)

    def __init__(self, entity: Optional[Entity] = None) -> None:
        if entity is None:
            entity = self.entity_store().create(self._declared_entity_type(), self.bundle)
        object.__setattr__(self, "entity", entity)

    @classmethod
    def build_from_entity(cls, entity: Entity) -> "DecoratedEntity":
        """Create an instance of the calling class around a raw record."""
        return cls(entity)

    @classmethod
    def for_type(
        cls,
        entity_type: str,
        bundle: Optional[str] = None,
        store: Optional[EntityStore] = None,
    ) -> Type["DecoratedEntity"]:
        """Build an unregistered subclass for an entity type and bundle."""
        name = f"Decorated_{entity_type}_{bundle or 'any'}"
        namespace = {"entity_type": entity_type, "bundle": bundle, "store": store}
        return DecoratedEntityMeta(name, (cls,), namespace, register=False)

    @classmethod
    def entity_store(cls) -> EntityStore:
        return cls.store or get_store()

    @classmethod
    def _declared_entity_type(cls) -> str:
        if not cls.entity_type:
            raise EntityDecoratorError(f"{cls.__name__} does not declare an entity_type")
        return cls.entity_type

    @classmethod
    def finder(cls) -> EntityFinder:
        return EntityFinder(cls, cls.bundle, cls._declared_entity_type(), store=cls.entity_store())

    # Finders

    @classmethod
    def find(cls, entity_id: Any) -> Optional["DecoratedEntity"]:
        """
        Find an instance by its identifier.

        Returns
        -------
        DecoratedEntity | None
            The matching instance of the calling class, or None.
        """
        id_key = cls.entity_store().schema(cls._declared_entity_type()).id_key
        results = cls.find_by(id_key, [entity_id]).execute()
        return results[0] if results else None

    @classmethod
    def find_by(cls, field_name: str, value: Any) -> EntityFinder:
        """
        Find entities where the field or property matches a scalar or a collection.

        Returns the finder so further conditions and orderings can be chained
        before `execute()`.
        """
        return cls.finder().find_by(field_name, value)

    @classmethod
    def find_first_by(cls, field_name: str, value: Any) -> Optional["DecoratedEntity"]:
        return cls.finder().find_first_by(field_name, value)

    # Field access

    def get_wrapped_entity(self) -> EntityWrapper:
        return EntityWrapper(self.entity_store(), self.entity)

    def get(self, name: str) -> Any:
        return self.get_wrapped_entity().get(name)

    def set(self, name: str, value: Any) -> None:
        self.get_wrapped_entity().set(name, value)

    def has(self, name: str) -> bool:
        return self.get_wrapped_entity().has(name)

    def get_decorated(
        self, name: str, decorator: Union[str, Type["DecoratedEntity"]]
    ) -> Any:
        """
        Get a field or property and decorate any records it holds.

        A single record comes back as an instance of `decorator`; in a list
        every record is decorated and other items are returned untouched.
        Anything else is returned as is.
        """
        cls = resolve_decorator(decorator)
        value = self.get(name)

        if isinstance(value, Entity):
            return cls.build_from_entity(value)
        if isinstance(value, (list, tuple)):
            return [
                cls.build_from_entity(item) if isinstance(item, Entity) else item
                for item in value
            ]
        return value

    # Persistence

    def save(self) -> Entity:
        """Persist the current state of the record."""
        return self.get_wrapped_entity().save()

    def delete(self) -> None:
        """Delete the record from the store. The instance keeps its record."""
        wrapper = self.get_wrapped_entity()
        log.debug(
            "Deleting entity",
            extra={
                "decorator": type(self).__name__,
                "entity_type": self.entity.entity_type,
                "entity_id": wrapper.identifier(),
            },
        )
        wrapper.delete()

    # Dynamic dispatch and record pass-through

    def __getattr__(self, name: str) -> Any:
        if name in _LOCAL_ATTRIBUTES or name.startswith("__"):
            raise AttributeError(name)

        resolved = resolve_accessor(name)
        if resolved is not None:
            if resolved.action == "get":
                return lambda: self.get(resolved.attribute)
            return lambda value: self.set(resolved.attribute, value)

        try:
            return getattr(self.entity, name)
        except AttributeError:
            raise MethodNotFound(type(self).__name__, name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _LOCAL_ATTRIBUTES or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            setattr(self.entity, name, value)

    def __delattr__(self, name: str) -> None:
        if name in _LOCAL_ATTRIBUTES or name in self.__dict__:
            object.__delattr__(self, name)
        else:
            delattr(self.entity, name)

    def __contains__(self, name: str) -> bool:
        return bool(getattr(self.entity, name, None))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecoratedEntity) or type(other) is not type(self):
            return NotImplemented
        if self.entity is other.entity:
            return True
        id_key = self.entity_store().schema(self.entity.entity_type).id_key
        mine = self.entity.id_value(id_key)
        return (
            mine is not None
            and self.entity.entity_type == other.entity.entity_type
            and mine == other.entity.id_value(id_key)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        entity = self.entity
        id_key = self.entity_store().schema(entity.entity_type).id_key
        return (
            f"<{type(self).__name__} {entity.entity_type}/{entity.type} "
            f"{id_key}={entity.id_value(id_key)}>"
        )


def resolve_decorator(decorator: Union[str, Type[DecoratedEntity]]) -> Type[DecoratedEntity]:
    """Return a decorator class given the class itself or its declared name."""
    if isinstance(decorator, type) and issubclass(decorator, DecoratedEntity):
        return decorator
    if isinstance(decorator, str) and decorator in DecoratedEntity._registry:
        return DecoratedEntity._registry[decorator]
    raise UnknownDecoratorError(f"No decorator class called {decorator!r} has been declared")


def declared_decorators() -> List[str]:
    return sorted(DecoratedEntity._registry)


__all__ = [
    "DecoratedEntity",
    "DecoratedEntityMeta",
    "declared_decorators",
    "resolve_decorator",
]
