"""
entity-decorator - typed active-record wrappers over an entity store.

Declare a subclass of DecoratedEntity per entity type and bundle, then read and
write fields, run finders and persist records without writing queries:

- DecoratedEntity: typed facade over one raw record, with generated
  `get_<name>` / `set_<name>` accessors and `find_by_<name>` finders
- EntityFinder: single-use field query builder returning decorated results
- Storage backends: in-memory and PostgreSQL (JSONB), selected by settings

Query building, persistence and field resolution belong to the store; this
package only coordinates them.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from entity_decorator.config import Settings, get_settings
from entity_decorator.decorator import DecoratedEntity, resolve_decorator
from entity_decorator.domain import (
    AttributeKind,
    AttributeSpec,
    Entity,
    EntitySchema,
    FieldQuery,
    SchemaRegistry,
    default_registry,
    field_,
    prop,
)
from entity_decorator.exceptions import (
    EntityDecoratorError,
    FinderConsumedError,
    MethodNotFound,
    UnknownAttributeError,
    UnknownDecoratorError,
    UnknownEntityTypeError,
    UnsupportedArgument,
)
from entity_decorator.finder import EntityFinder
from entity_decorator.storage import (
    EntityStore,
    MemoryEntityStore,
    PostgresEntityStore,
    get_store,
    set_default_store,
)
from entity_decorator.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Decorators and finders
    "DecoratedEntity",
    "EntityFinder",
    "resolve_decorator",
    # Domain
    "AttributeKind",
    "AttributeSpec",
    "Entity",
    "EntitySchema",
    "FieldQuery",
    "SchemaRegistry",
    "default_registry",
    "field_",
    "prop",
    # Storage
    "EntityStore",
    "MemoryEntityStore",
    "PostgresEntityStore",
    "get_store",
    "set_default_store",
    # Errors
    "EntityDecoratorError",
    "FinderConsumedError",
    "MethodNotFound",
    "UnknownAttributeError",
    "UnknownDecoratorError",
    "UnknownEntityTypeError",
    "UnsupportedArgument",
    # Logging
    "configure_logging",
    "get_logger",
]
