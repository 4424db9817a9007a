"""
Infrastructure package for entity-decorator.

Centralizes database connectivity concerns (dedicated connections, pooling).
Keep this layer focused on I/O and resource management, decoupled from
decorator and finder logic.
"""

from entity_decorator.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
