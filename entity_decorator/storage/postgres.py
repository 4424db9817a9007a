"""
PostgreSQL entity store.

All entity types share one table: the entity type, a store-assigned id, the
bundle, and a JSONB document holding properties (JSON scalars) and fields
(JSON arrays of deltas). Field queries compile to psycopg.sql compositions and
run over a pooled connection.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterable, List, Optional, Tuple

from psycopg import Connection, sql
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from entity_decorator.config import get_settings
from entity_decorator.domain.models import Entity
from entity_decorator.domain.query import Condition, FieldQuery, Operator, Ordering
from entity_decorator.domain.schema import AttributeKind, EntitySchema, SchemaRegistry
from entity_decorator.infrastructure.db_factory import (
    apply_statement_timeout,
    get_sync_connection,
    get_sync_pool,
)
from entity_decorator.storage.abstract import AbstractEntityStore, QueryResult
from entity_decorator.utils.logging import get_logger

log = get_logger(__name__)

Fragment = Tuple[sql.Composable, List[Any]]


class PostgresEntityStore(AbstractEntityStore):
    """
    JSONB-backed store over a psycopg ConnectionPool.

    Parameters
    ----------
    registry : SchemaRegistry | None
        Schemas of the stored entity types. Defaults to the global registry.
    table : str | None
        Table name. Defaults to settings.entity_table.
    dsn_override : str | None
        Use a private pool on this DSN instead of the shared managed pool.
    """

    name: str = "postgres"

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        table: Optional[str] = None,
        dsn_override: Optional[str] = None,
    ) -> None:
        super().__init__(registry)
        settings = get_settings()
        self.table = table or settings.entity_table
        self.statement_timeout_ms = settings.db_statement_timeout_ms
        self._dsn_override = dsn_override
        self._pool_instance: ConnectionPool | None = None

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is not None:
            return self._pool_instance
        if self._dsn_override:
            settings = get_settings()
            self._pool_instance = ConnectionPool(
                conninfo=self._dsn_override,
                min_size=settings.pool_min_size,
                max_size=settings.pool_max_size,
                open=True,
            )
        else:
            self._pool_instance = get_sync_pool()
        return self._pool_instance

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        with self._get_pool().connection() as conn:
            with conn.cursor() as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
            yield conn

    def close(self) -> None:
        """Close the private pool, if this store opened one."""
        if self._dsn_override and self._pool_instance is not None:
            self._pool_instance.close()
        self._pool_instance = None

    def install(self) -> None:
        """Create the entity table and its indexes when missing."""
        table = sql.Identifier(self.table)
        statements = [
            sql.SQL(
                "CREATE TABLE IF NOT EXISTS {} ("
                " entity_type text NOT NULL,"
                " id bigserial NOT NULL,"
                " bundle text,"
                " data jsonb NOT NULL DEFAULT '{{}}'::jsonb,"
                " PRIMARY KEY (entity_type, id))"
            ).format(table),
            sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} (entity_type, bundle)").format(
                sql.Identifier(f"{self.table}_bundle_idx"), table
            ),
            sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} USING gin (data)").format(
                sql.Identifier(f"{self.table}_data_idx"), table
            ),
        ]
        conn = get_sync_connection(self._dsn_override)
        try:
            with conn.cursor() as cur:
                for statement in statements:
                    cur.execute(statement)
            conn.commit()
        finally:
            conn.close()
        log.info("Entity table installed", extra={"table": self.table})

    def _row_to_entity(
        self, schema: EntitySchema, entity_id: int, bundle: Optional[str], data: Dict[str, Any]
    ) -> Entity:
        values = dict(data)
        values[schema.id_key] = entity_id
        return Entity(entity_type=schema.entity_type, type=bundle, **values)

    def load_multiple(self, entity_type: str, entity_ids: Iterable[Any]) -> List[Entity]:
        schema = self.schema(entity_type)
        ids = [int(entity_id) for entity_id in entity_ids]
        if not ids:
            return []

        query = sql.SQL(
            "SELECT id, bundle, data FROM {} WHERE entity_type = %s AND id = ANY(%s)"
        ).format(sql.Identifier(self.table))
        with self._connection() as conn:
            rows = conn.execute(query, (entity_type, ids)).fetchall()

        by_id = {row[0]: self._row_to_entity(schema, row[0], row[1], row[2]) for row in rows}
        return [by_id[entity_id] for entity_id in ids if entity_id in by_id]

    def save(self, entity: Entity) -> Entity:
        schema = self.schema(entity.entity_type)
        data = entity.values()
        entity_id = data.pop(schema.id_key, None)
        table = sql.Identifier(self.table)

        with self._connection() as conn:
            if entity_id is None:
                row = conn.execute(
                    sql.SQL(
                        "INSERT INTO {} (entity_type, bundle, data) VALUES (%s, %s, %s) RETURNING id"
                    ).format(table),
                    (entity.entity_type, entity.type, Jsonb(data)),
                ).fetchone()
                entity_id = row[0]
                setattr(entity, schema.id_key, entity_id)
            else:
                conn.execute(
                    sql.SQL(
                        "INSERT INTO {} (entity_type, id, bundle, data) VALUES (%s, %s, %s, %s) "
                        "ON CONFLICT (entity_type, id) "
                        "DO UPDATE SET bundle = EXCLUDED.bundle, data = EXCLUDED.data"
                    ).format(table),
                    (entity.entity_type, entity_id, entity.type, Jsonb(data)),
                )

        log.debug(
            "Saved entity",
            extra={"entity_type": entity.entity_type, "entity_id": entity_id, "store": self.name},
        )
        return entity

    def delete(self, entity_type: str, entity_id: Any) -> None:
        if entity_id is None:
            return
        with self._connection() as conn:
            cur = conn.execute(
                sql.SQL("DELETE FROM {} WHERE entity_type = %s AND id = %s").format(
                    sql.Identifier(self.table)
                ),
                (entity_type, int(entity_id)),
            )
            deleted = cur.rowcount
        log.info(
            "Deleted entity",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "existed": bool(deleted),
                "store": self.name,
            },
        )

    def _target(self, schema: EntitySchema, key: str) -> Fragment:
        """SQL expression selecting the stored value of an attribute."""
        if key == schema.id_key:
            return sql.SQL("id"), []
        if key == schema.bundle_key:
            return sql.SQL("bundle"), []
        return sql.SQL("(data -> %s)"), [key]

    def _compile_condition(self, schema: EntitySchema, condition: Condition) -> Fragment:
        target, params = self._target(schema, condition.key)
        values = list(condition.values())

        if condition.key in (schema.id_key, schema.bundle_key):
            if condition.operator is Operator.IN:
                return sql.SQL("{} = ANY(%s)").format(target), params + [values]
            return sql.SQL("{} = %s").format(target), params + [values[0]]

        if condition.kind is AttributeKind.FIELD:
            # Fields hold arrays of deltas; match when any delta is accepted.
            wrapped = [Jsonb([value]) for value in values]
            if condition.operator is Operator.IN:
                return sql.SQL("{} @> ANY(%s)").format(target), params + [wrapped]
            return sql.SQL("{} @> %s").format(target), params + [wrapped[0]]

        if condition.operator is Operator.IN:
            return (
                sql.SQL("{} = ANY(%s)").format(target),
                params + [[Jsonb(value) for value in values]],
            )
        return sql.SQL("{} = %s").format(target), params + [Jsonb(values[0])]

    def _compile_ordering(self, schema: EntitySchema, ordering: Ordering) -> Fragment:
        target, params = self._target(schema, ordering.key)
        if ordering.key not in (schema.id_key, schema.bundle_key):
            if ordering.kind is AttributeKind.FIELD:
                target = sql.SQL("({} -> 0)").format(target)
            # JSON null sorts lowest in jsonb; map it to SQL NULL so it sorts like a missing key.
            target = sql.SQL("NULLIF({}, 'null'::jsonb)").format(target)
        return sql.SQL("{} {}").format(target, sql.SQL(ordering.direction.value)), params

    def compile(self, query: FieldQuery) -> Fragment:
        """Translate a FieldQuery into a SELECT over matching ids."""
        schema = self.schema(query.entity_type)
        where: List[sql.Composable] = [sql.SQL("entity_type = %s")]
        params: List[Any] = [query.entity_type]

        if query.bundle is not None:
            where.append(sql.SQL("bundle = %s"))
            params.append(query.bundle)

        for condition in query.conditions:
            clause, clause_params = self._compile_condition(schema, condition)
            where.append(clause)
            params.extend(clause_params)

        order: List[sql.Composable] = []
        for ordering in query.orderings:
            clause, clause_params = self._compile_ordering(schema, ordering)
            order.append(clause)
            params.extend(clause_params)
        order.append(sql.SQL("id ASC"))

        statement = sql.SQL("SELECT id FROM {} WHERE {} ORDER BY {}").format(
            sql.Identifier(self.table),
            sql.SQL(" AND ").join(where),
            sql.SQL(", ").join(order),
        )
        return statement, params

    def execute_query(self, query: FieldQuery) -> QueryResult:
        statement, params = self.compile(query)
        with self._connection() as conn:
            ids = [row[0] for row in conn.execute(statement, params).fetchall()]

        log.debug(
            "Executed field query",
            extra={
                "entity_type": query.entity_type,
                "bundle": query.bundle,
                "conditions": len(query.conditions),
                "orderings": len(query.orderings),
                "matches": len(ids),
                "store": self.name,
            },
        )
        if not ids:
            return {}
        return {query.entity_type: ids}


__all__ = ["PostgresEntityStore"]
