from __future__ import annotations

from typing import Any, List, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from entity_decorator.decorator import DecoratedEntity
from entity_decorator.domain.schema import EntitySchema, SchemaRegistry

MAX_CELL_WIDTH = 48


def _cell(value: Any) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, (list, tuple)):
        text = ", ".join(str(item) for item in value)
    else:
        text = str(value)
    if len(text) > MAX_CELL_WIDTH:
        return text[: MAX_CELL_WIDTH - 1] + "…"
    return text


def _columns(schema: EntitySchema, results: Sequence[DecoratedEntity]) -> List[str]:
    """Id and bundle first, then every stored key seen in the results."""
    columns = [schema.id_key, schema.bundle_key]
    for item in results:
        for key in item.entity.values():
            if key not in columns:
                columns.append(key)
    return columns


def print_entities(
    results: Sequence[DecoratedEntity],
    schema: EntitySchema,
    console: Console | None = None,
) -> None:
    """
    Render decorated results as a rich table, one row per record.

    Cells show stored values: references appear as ids, fields as their deltas.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No matching entities.[/yellow]")
        return

    table = Table(
        title=f"{schema.entity_type} entities",
        box=box.ROUNDED,
        caption=f"{len(results)} result(s)",
    )
    columns = _columns(schema, results)
    for index, column in enumerate(columns):
        table.add_column(
            column,
            style="cyan" if index == 0 else None,
            justify="right" if index == 0 else "left",
            no_wrap=index == 0,
        )

    for item in results:
        entity = item.entity
        row = [_cell(entity.id_value(schema.id_key)), _cell(entity.type)]
        row.extend(_cell(getattr(entity, column, None)) for column in columns[2:])
        table.add_row(*row)

    console.print(table)


def print_schemas(registry: SchemaRegistry, console: Console | None = None) -> None:
    """Render every registered entity type with its properties and fields."""
    console = console or Console()

    table = Table(title="Entity types", box=box.ROUNDED)
    table.add_column("Entity type", style="cyan", no_wrap=True)
    table.add_column("Id key", style="magenta")
    table.add_column("Properties", style="green")
    table.add_column("Fields", style="yellow")

    for entity_type in registry.entity_types():
        schema = registry.get(entity_type)
        table.add_row(
            entity_type,
            schema.id_key,
            ", ".join(schema.property_names()),
            ", ".join(schema.field_names()) or "[dim]-[/dim]",
        )

    console.print(table)


__all__ = ["print_entities", "print_schemas"]
