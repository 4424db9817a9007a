"""
Storage package for entity-decorator.

Re-exports the store interfaces and concrete backends, and owns the process-wide
default store that decorators fall back to when they do not declare their own.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from entity_decorator.config import get_settings
from entity_decorator.storage.abstract import AbstractEntityStore, EntityStore, QueryResult
from entity_decorator.storage.memory import MemoryEntityStore
from entity_decorator.storage.postgres import PostgresEntityStore
from entity_decorator.storage.wrapper import EntityWrapper, FieldAccessible
from entity_decorator.utils.logging import get_logger

log = get_logger(__name__)

_default_store: Optional[EntityStore] = None
_lock = threading.Lock()


def _store_factories() -> Dict[str, Callable[[], EntityStore]]:
    """Registry of available storage backends."""
    return {
        "memory": lambda: MemoryEntityStore(),
        "postgres": lambda: PostgresEntityStore(),
    }


def available_stores() -> List[str]:
    """List available backend names."""
    return sorted(_store_factories().keys())


def create_store(name: str) -> EntityStore:
    factories = _store_factories()
    if name not in factories:
        raise ValueError(f"Unknown entity store '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


def get_store() -> EntityStore:
    """Return the default store, building it from settings on first use."""
    global _default_store
    with _lock:
        if _default_store is None:
            backend = get_settings().entity_store
            _default_store = create_store(backend)
            log.debug("Default entity store created", extra={"store": backend})
        return _default_store


def set_default_store(store: Optional[EntityStore]) -> None:
    """Replace the default store; None resets it to the configured backend."""
    global _default_store
    with _lock:
        _default_store = store


__all__ = [
    "AbstractEntityStore",
    "EntityStore",
    "EntityWrapper",
    "FieldAccessible",
    "MemoryEntityStore",
    "PostgresEntityStore",
    "QueryResult",
    "available_stores",
    "create_store",
    "get_store",
    "set_default_store",
]
