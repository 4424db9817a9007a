"""
Integration tests for the PostgreSQL entity store.

These tests run against a real PostgreSQL instance and verify that decorated
entities persist, load and query the same way they do in memory.

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest

from entity_decorator.decorator import DecoratedEntity
from entity_decorator.domain.models import Entity
from entity_decorator.domain.schema import field_
from entity_decorator.exceptions import FinderConsumedError
from entity_decorator.storage import PostgresEntityStore

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


class PgUser(DecoratedEntity):
    entity_type = "user"


class PgArticle(DecoratedEntity):
    entity_type = "node"
    bundle = "pg_article"
    attributes = (
        field_("field_pg_topics", multiple=True),
        field_("field_pg_related", multiple=True, target_type="node"),
    )


def _article(title: str, **values) -> PgArticle:
    article = PgArticle()
    article.set("title", title)
    for name, value in values.items():
        article.set(name, value)
    article.save()
    return article


class TestPersistence:
    """Save, load and delete through the decorator."""

    def test_save_assigns_identifier_and_round_trips(self, pg_store: PostgresEntityStore):
        article = _article("Stored", field_pg_topics=["db", "python"])

        loaded = PgArticle.find(article.entity.nid)

        assert loaded is not None
        assert loaded == article
        assert loaded.get("title") == "Stored"
        assert loaded.get("field_pg_topics") == ["db", "python"]
        assert loaded.get("status") == 1

    def test_save_existing_record_updates_in_place(self, pg_store: PostgresEntityStore):
        article = _article("Before")
        article.set("title", "After")
        article.save()

        assert PgArticle.find(article.entity.nid).get("title") == "After"
        assert len(PgArticle.find_by("title", ["Before", "After"]).execute()) == 1

    def test_delete_removes_the_record(self, pg_store: PostgresEntityStore):
        article = _article("Doomed")
        nid = article.entity.nid

        article.delete()

        assert PgArticle.find(nid) is None

    def test_load_multiple_keeps_requested_order(self, pg_store: PostgresEntityStore):
        first = _article("One")
        second = _article("Two")

        loaded = pg_store.load_multiple("node", [second.entity.nid, 999999, first.entity.nid])

        assert [entity.title for entity in loaded] == ["Two", "One"]


class TestFinders:
    """Conditions and orderings compiled to SQL."""

    def test_property_equality_and_in(self, pg_store: PostgresEntityStore):
        _article("Live", status=1)
        _article("Hidden", status=0)
        _article("Also live", status=1)

        titles = sorted(a.get("title") for a in PgArticle.find_by_status(1).execute())
        both = PgArticle.find_by("title", ("Live", "Hidden")).execute()

        assert titles == ["Also live", "Live"]
        assert len(both) == 2

    def test_field_conditions_match_any_delta(self, pg_store: PostgresEntityStore):
        _article("Tagged db", field_pg_topics=["db", "ops"])
        _article("Tagged web", field_pg_topics=["web"])

        found = PgArticle.find_by_field_pg_topics("ops").execute()
        either = PgArticle.find_by("field_pg_topics", ["db", "web"]).execute()

        assert [a.get("title") for a in found] == ["Tagged db"]
        assert len(either) == 2

    def test_ordering_by_property_descending(self, pg_store: PostgresEntityStore):
        for title, sticky in [("low", 0), ("high", 2), ("mid", 1)]:
            _article(title, sticky=sticky)

        results = PgArticle.finder().order_by("sticky", "DESC").execute()

        assert [a.get("title") for a in results] == ["high", "mid", "low"]

    def test_stored_none_sorts_like_a_missing_value(self, pg_store: PostgresEntityStore):
        _article("empty", sticky=None)
        _article("one", sticky=1)
        _article("zero", sticky=0)

        ascending = PgArticle.finder().order_by("sticky").execute()
        descending = PgArticle.finder().order_by("sticky", "DESC").execute()

        assert [a.get("title") for a in ascending] == ["zero", "one", "empty"]
        assert [a.get("title") for a in descending] == ["empty", "one", "zero"]

    def test_bundle_scopes_results(self, pg_store: PostgresEntityStore):
        _article("In bundle")
        pg_store.save(Entity(entity_type="node", type="pg_page", title="Elsewhere", status=1))

        assert [a.get("title") for a in PgArticle.find_by_status(1).execute()] == ["In bundle"]

    def test_find_first_by_returns_single_instance(self, pg_store: PostgresEntityStore):
        _article("Only")

        assert PgArticle.find_first_by_title("Only").get("title") == "Only"
        assert PgArticle.find_first_by_title("Missing") is None

    def test_finder_cannot_run_twice(self, pg_store: PostgresEntityStore):
        finder = PgArticle.find_by_status(1)
        finder.execute()

        with pytest.raises(FinderConsumedError):
            finder.execute()


class TestReferences:
    """Property and field references resolved through the store."""

    def test_author_reference_loads_user(self, pg_store: PostgresEntityStore):
        author = PgUser()
        author.set("name", "ada")
        author.save()

        article = PgArticle()
        article.set("title", "By Ada")
        article.set("author", author)
        article.save()

        reloaded = PgArticle.find(article.entity.nid)

        assert reloaded.entity.uid == author.entity.uid
        assert reloaded.get("author").name == "ada"
        assert reloaded.get_decorated("author", PgUser) == author

    def test_related_field_loads_targets(self, pg_store: PostgresEntityStore):
        target = _article("Target")
        source = _article("Source", field_pg_related=[target])

        related = PgArticle.find(source.entity.nid).get_decorated("field_pg_related", PgArticle)

        assert related == [target]
