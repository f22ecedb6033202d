"""Tests for the in-memory store."""

import pytest
from conftest import Article

from slug_guard.core.errors import UniqueViolation
from slug_guard.services.storage import MemoryStore, Store


@pytest.fixture
def store():
    return MemoryStore()


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_satisfies_store_protocol(self, store):
        """MemoryStore implements the Store protocol."""
        assert isinstance(store, Store)

    def test_insert_assigns_ids(self, store):
        """Rows without an id get one from a counter."""
        first, second = Article(title="A"), Article(title="B")
        store.insert(first)
        store.insert(second)
        assert (first.id, second.id) == (1, 2)

    def test_failed_insert_keeps_id_unassigned(self, store):
        """A rejected row is not given an id."""
        store.insert(Article(slug="tent"))
        rejected = Article(slug="tent")

        with pytest.raises(UniqueViolation, match="article.slug"):
            store.insert(rejected)
        assert rejected.id is None

    def test_is_persisted_follows_stored_rows(self, store):
        """Only entities whose id is stored count as persisted."""
        article = Article(title="Tent")
        assert not store.is_persisted(article)

        store.insert(article)

        assert store.is_persisted(article)
        assert store.is_persisted(store.get(Article, article.id))
        assert not store.is_persisted(Article(title="Tent"))

    def test_savepoint_rollback_unpersists(self, store):
        """A row inserted in a failed savepoint is no longer persisted."""
        article = Article(title="Tent")

        def insert_then_fail():
            store.insert(article)
            raise UniqueViolation("UNIQUE constraint failed: article.slug")

        with pytest.raises(UniqueViolation):
            store.with_savepoint(insert_then_fail)

        assert not store.is_persisted(article)
        assert store.all(Article) == []
        assert store.savepoint_depth == 0

    def test_rows_are_copies(self, store):
        """Changing an entity after a write does not change the stored row."""
        article = Article(title="Tent", slug="tent")
        store.insert(article)
        article.slug = "changed"

        assert store.get(Article, article.id).slug == "tent"
        assert not store.exists(Article, "slug", "changed")

    def test_extra_unique_fields(self):
        """Configured fields are unique too."""
        store = MemoryStore(unique_fields={Article: ["title"]})
        store.insert(Article(title="Tent"))

        with pytest.raises(UniqueViolation, match="article.title"):
            store.insert(Article(title="Tent"))

    def test_duplicate_id(self, store):
        """Inserting an existing id is a violation on the id."""
        store.insert(Article(id=7))

        with pytest.raises(UniqueViolation, match="article.id"):
            store.insert(Article(id=7))
