"""
Pytest configuration for entity-decorator.

Provides fixtures for:
- Settings cache isolation
- A fresh in-memory default store per test
- Database connection management and a Postgres store for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from entity_decorator.config import Settings, get_settings
from entity_decorator.storage import MemoryEntityStore, PostgresEntityStore, set_default_store

TEST_TABLE = "entity_decorator_test_entities"


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """
    Drop cached settings around every test so env overrides take effect.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> Generator[MemoryEntityStore, None, None]:
    """
    Empty in-memory store installed as the process-wide default.
    """
    memory_store = MemoryEntityStore()
    set_default_store(memory_store)
    try:
        yield memory_store
    finally:
        set_default_store(None)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "entity_decorator"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def pg_store(
    test_dsn: str, db_connection_available: bool
) -> Generator[PostgresEntityStore, None, None]:
    """
    Postgres store on a dedicated, emptied table, installed as the default store.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    postgres_store = PostgresEntityStore(table=TEST_TABLE, dsn_override=test_dsn)
    postgres_store.install()
    with psycopg.connect(test_dsn) as conn:
        conn.execute(f"TRUNCATE TABLE {TEST_TABLE} RESTART IDENTITY")

    set_default_store(postgres_store)
    try:
        yield postgres_store
    finally:
        set_default_store(None)
        postgres_store.close()
