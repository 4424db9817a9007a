from __future__ import annotations

import re
import sys
from typing import Any, List, Optional, Tuple

import typer

from entity_decorator.config import get_settings
from entity_decorator.decorator import DecoratedEntity
from entity_decorator.exceptions import EntityDecoratorError
from entity_decorator.reporter import print_entities, print_schemas
from entity_decorator.storage import PostgresEntityStore, get_store
from entity_decorator.utils.logging import configure_logging

app = typer.Typer(help="entity-decorator CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?\d+\.\d+")


def _parse_scalar(text: str) -> Any:
    """Integer and plain decimal literals become numbers; anything else stays text."""
    if _INTEGER.fullmatch(text):
        return int(text)
    if _DECIMAL.fullmatch(text):
        return float(text)
    return text


def _parse_where(expression: str) -> Tuple[str, Any]:
    """Parse `name=value` or `name=v1,v2`; a comma makes the value a list."""
    name, sep, raw = expression.partition("=")
    if not sep or not name:
        raise typer.BadParameter(f"Expected name=value, got {expression!r}")
    if "," in raw:
        return name.strip(), [_parse_scalar(part.strip()) for part in raw.split(",") if part.strip()]
    return name.strip(), _parse_scalar(raw.strip())


def _parse_order(expression: str) -> Tuple[str, str]:
    name, _, direction = expression.partition(":")
    return name.strip(), (direction.strip() or "ASC")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"store={settings.entity_store} table={settings.entity_table} | "
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.pool_min_size},{settings.pool_max_size}) "
        f"strict_empty_filters={settings.strict_empty_filters}"
    )


@app.command("init-db")
def init_db(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Override the DSN built from settings."),
) -> None:
    """
    Create the entity table in PostgreSQL when it does not exist yet.
    """
    _setup_logging()
    store = PostgresEntityStore(dsn_override=dsn)
    store.install()
    typer.echo(f"Table '{store.table}' ready.")


@app.command("types")
def list_types() -> None:
    """
    List registered entity types with their properties and fields.
    """
    print_schemas(get_store().registry)


@app.command()
def find(
    entity_type: str = typer.Argument(..., help="Entity type, e.g. node."),
    bundle: Optional[str] = typer.Argument(None, help="Bundle, e.g. article."),
    where: List[str] = typer.Option(
        [], "--where", "-w", help="Condition name=value (comma-separate values for IN)."
    ),
    order_by: List[str] = typer.Option(
        [], "--order-by", "-o", help="Ordering name[:ASC|DESC]; repeatable."
    ),
    first: bool = typer.Option(False, "--first", help="Only return the first match."),
) -> None:
    """
    Run a finder against the configured store and print the matches.
    """
    _setup_logging()
    try:
        finder = DecoratedEntity.for_type(entity_type, bundle).finder()
        for expression in where:
            finder.find_by(*_parse_where(expression))
        for expression in order_by:
            finder.order_by(*_parse_order(expression))

        if first:
            match = finder.first()
            results = [match] if match is not None else []
        else:
            results = finder.execute()
    except EntityDecoratorError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    print_entities(results, finder.schema)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
