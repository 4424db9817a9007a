from __future__ import annotations

import pytest
from typer.testing import CliRunner

from entity_decorator.domain.models import Entity
from entity_decorator.main import _parse_order, _parse_scalar, _parse_where, app
from entity_decorator.storage import MemoryEntityStore

runner = CliRunner()
WIDE = {"COLUMNS": "200", "ENTITY_STORE": "memory"}


@pytest.fixture
def seeded(store: MemoryEntityStore) -> MemoryEntityStore:
    for title, status in [("Published post", 1), ("Draft post", 0), ("Second post", 1)]:
        store.save(Entity(entity_type="node", type="post", title=title, status=status))
    return store


def test_parse_where_scalars_and_lists():
    assert _parse_where("status=1") == ("status", 1)
    assert _parse_where("title=Hello") == ("title", "Hello")
    assert _parse_where("nid=1,2") == ("nid", [1, 2])


@pytest.mark.parametrize(
    "text, expected",
    [("42", 42), ("-7", -7), ("1.5", 1.5), ("inf", "inf"), ("nan", "nan"), ("1e3", "1e3"), ("1_000", "1_000")],
)
def test_parse_scalar_only_converts_plain_numbers(text, expected):
    assert _parse_scalar(text) == expected
    assert type(_parse_scalar(text)) is type(expected)


def test_parse_where_rejects_missing_operator():
    with pytest.raises(Exception, match="name=value"):
        _parse_where("status")


def test_parse_order_defaults_to_ascending():
    assert _parse_order("created") == ("created", "ASC")
    assert _parse_order("created:DESC") == ("created", "DESC")


def test_info_shows_configuration():
    result = runner.invoke(app, ["info"], env=WIDE)

    assert result.exit_code == 0
    assert "store=memory" in result.output


def test_types_lists_registered_entity_types(store: MemoryEntityStore):
    result = runner.invoke(app, ["types"], env=WIDE)

    assert result.exit_code == 0
    assert "taxonomy_term" in result.output
    assert "nid" in result.output


def test_find_prints_matching_entities(seeded: MemoryEntityStore):
    result = runner.invoke(
        app, ["find", "node", "post", "--where", "status=1", "--order-by", "title:DESC"], env=WIDE
    )

    assert result.exit_code == 0
    assert "Second post" in result.output
    assert "Published post" in result.output
    assert "Draft post" not in result.output
    assert result.output.index("Second post") < result.output.index("Published post")


def test_find_first_limits_output(seeded: MemoryEntityStore):
    result = runner.invoke(app, ["find", "node", "post", "--first"], env=WIDE)

    assert result.exit_code == 0
    assert "Published post" in result.output
    assert "Second post" not in result.output


def test_find_without_matches(seeded: MemoryEntityStore):
    result = runner.invoke(app, ["find", "node", "page"], env=WIDE)

    assert result.exit_code == 0
    assert "No matching entities" in result.output


def test_find_reports_unknown_attributes(seeded: MemoryEntityStore):
    result = runner.invoke(app, ["find", "node", "post", "--where", "colour=red"], env=WIDE)

    assert result.exit_code == 1
    assert "colour" in result.output
