from __future__ import annotations

import pytest

from entity_decorator.domain.query import Direction, FieldQuery
from entity_decorator.domain.schema import (
    AttributeKind,
    EntitySchema,
    SchemaRegistry,
    builtin_schemas,
    default_registry,
    field_,
    prop,
)
from entity_decorator.exceptions import (
    UnknownAttributeError,
    UnknownEntityTypeError,
    UnsupportedArgument,
)


def test_builtin_identifier_keys():
    registry = SchemaRegistry(builtin_schemas())

    assert registry.get("node").id_key == "nid"
    assert registry.get("user").id_key == "uid"
    assert registry.get("taxonomy_term").id_key == "tid"
    assert registry.get("entity").id_key == "id"
    assert registry.entity_types() == ["entity", "node", "taxonomy_term", "user"]


def test_identifier_and_bundle_key_are_properties():
    schema = default_registry.get("node")

    assert schema.is_property("nid")
    assert schema.is_property("type")
    assert schema.has("type")


def test_author_property_is_stored_under_uid():
    author = default_registry.get("node").attribute("author")

    assert author.kind is AttributeKind.PROPERTY
    assert author.key == "uid"
    assert author.target_type == "user"


def test_unknown_attribute_raises_lookup_error():
    schema = EntitySchema.build("gadget", attributes=[prop("label")])

    with pytest.raises(UnknownAttributeError) as excinfo:
        schema.attribute("colour")

    assert isinstance(excinfo.value, LookupError)
    assert excinfo.value.entity_type == "gadget"
    assert excinfo.value.name == "colour"


def test_unknown_entity_type_lists_known_types():
    registry = SchemaRegistry([EntitySchema.build("gadget")])

    with pytest.raises(UnknownEntityTypeError, match="Known: gadget"):
        registry.get("widget")


def test_extend_adds_fields_without_touching_existing_schema():
    registry = SchemaRegistry([EntitySchema.build("gadget", attributes=[prop("label")])])
    original = registry.get("gadget")

    extended = registry.extend("gadget", [field_("field_parts", multiple=True)])

    assert extended.is_field("field_parts")
    assert extended.is_property("label")
    assert not original.has("field_parts")
    assert registry.get("gadget") is extended
    assert extended.field_names() == ["field_parts"]
    assert extended.property_names() == ["id", "label"]


def test_extend_creates_unknown_types():
    registry = SchemaRegistry()

    schema = registry.extend("gadget", [prop("label")])

    assert "gadget" in registry
    assert schema.id_key == "id"


def test_only_nodes_get_defaults():
    registry = SchemaRegistry(builtin_schemas())

    assert set(registry.get("node").defaults()) == {
        "status",
        "promote",
        "sticky",
        "uid",
        "created",
        "changed",
    }
    assert registry.get("user").defaults() == {}


def test_query_builder_accumulates_in_call_order():
    query = (
        FieldQuery("node", "article")
        .property_condition("status", 1)
        .field_condition("field_tags", (1, 2), "IN")
        .property_order_by("created", "desc")
    )

    assert [condition.name for condition in query.conditions] == ["status", "field_tags"]
    assert query.conditions[1].values() == (1, 2)
    assert query.conditions[0].values() == (1,)
    assert query.orderings[0].direction is Direction.DESC
    assert query.orderings[0].descending


def test_direction_parse_rejects_unknown_values():
    assert Direction.parse("asc") is Direction.ASC

    with pytest.raises(UnsupportedArgument):
        Direction.parse("up")
