"""Tests for the SQLModel store on an in-memory SQLite database."""

import hashlib

import pytest
from conftest import FixedClock, SequenceRandom
from sqlmodel import Field, Session, SQLModel, select

from slug_guard.core.errors import StoreError, UniqueViolation
from slug_guard.services.slugs import SlugDescriptor, SlugService
from slug_guard.services.storage import SQLStore, Store, create_store_engine


class Post(SQLModel, table=True):
    """Slug filled in after the INSERT."""

    __tablename__ = "posts"

    id: int | None = Field(default=None, primary_key=True)
    title: str | None = None
    email: str | None = Field(default=None, unique=True)
    slug: str | None = Field(default=None, unique=True)


class Page(SQLModel, table=True):
    """Slug required at INSERT time."""

    __tablename__ = "pages"

    id: int | None = Field(default=None, primary_key=True)
    title: str | None = None
    slug: str | None = Field(default=None, unique=True, nullable=False)


class RacingSQLStore(SQLStore):
    """SQLStore whose first probe misses a slug another writer already holds."""

    def __init__(self, session):
        super().__init__(session)
        self.raced = False

    def exists(self, collection, field, value):
        if not self.raced:
            self.raced = True
            return False
        return super().exists(collection, field, value)


@pytest.fixture
def engine():
    engine = create_store_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def make_service(model):
    return SlugService(
        SlugDescriptor.for_type(model, "title"),
        random_source=SequenceRandom(),
        clock=FixedClock(),
    )


class TestDescriptorFromTable:
    """Tests for slug column detection on SQLModel tables."""

    def test_nullable_and_not_null_columns(self):
        """Column nullability decides the timing model."""
        assert not SlugDescriptor.for_type(Post, "title").requires_slug_on_insert
        assert SlugDescriptor.for_type(Page, "title").requires_slug_on_insert

    def test_collection_is_table_name(self):
        """The collection name is the table name."""
        assert SlugDescriptor.for_type(Post).collection == "posts"


class TestSQLStore:
    """Tests for SQLStore primitives."""

    def test_satisfies_store_protocol(self, engine):
        """SQLStore implements the Store protocol."""
        with Session(engine) as session:
            assert isinstance(SQLStore(session), Store)

    def test_exists(self, engine):
        """exists finds stored values only."""
        with Session(engine) as session:
            store = SQLStore(session)
            store.insert(Post(title="Tent", slug="tent"))

            assert store.exists(Post, "slug", "tent")
            assert not store.exists(Post, "slug", "lamp")

    def test_unique_violation_is_translated(self, engine):
        """Duplicate values raise UniqueViolation carrying the driver message."""
        with Session(engine) as session:
            store = SQLStore(session)
            store.insert(Post(title="A", email="a@example.com"))

            with pytest.raises(UniqueViolation, match="posts.email") as excinfo:
                store.with_savepoint(lambda: store.insert(Post(title="B", email="a@example.com")))
            assert excinfo.value.__cause__ is not None

    def test_not_null_violation_is_store_error(self, engine):
        """Other integrity errors are plain StoreErrors."""
        with Session(engine) as session:
            store = SQLStore(session)

            with pytest.raises(StoreError) as excinfo:
                store.with_savepoint(lambda: store.insert(Page(title="Tent")))
            assert not isinstance(excinfo.value, UniqueViolation)

    def test_savepoint_keeps_outer_transaction(self, engine):
        """A failed savepoint leaves earlier work in the transaction intact."""
        with Session(engine) as session:
            store = SQLStore(session)
            store.insert(Post(title="A", slug="a"))

            with pytest.raises(UniqueViolation):
                store.with_savepoint(lambda: store.insert(Post(title="B", slug="a")))

            store.insert(Post(title="C", slug="c"))
            session.commit()

        with Session(engine) as session:
            slugs = sorted(p.slug for p in session.exec(select(Post)).all())
        assert slugs == ["a", "c"]

    def test_is_persisted(self, engine):
        """Only flushed rows count as persisted."""
        with Session(engine) as session:
            store = SQLStore(session)
            post = Post(title="Tent")
            assert not store.is_persisted(post)
            store.insert(post)
            assert store.is_persisted(post)


class TestSlugServiceOnSQL:
    """End-to-end slug assignment against SQLite."""

    @pytest.mark.parametrize("model", [Post, Page])
    def test_round_trip(self, engine, model):
        """A created record reloads with the same slug."""
        with Session(engine) as session:
            record = make_service(model).create(SQLStore(session), model(title="Big Red Backpack"))
            session.commit()
            record_id = record.id

        with Session(engine) as session:
            assert session.get(model, record_id).slug == "big-red-backpack"

    @pytest.mark.parametrize("model", [Post, Page])
    def test_duplicate_titles(self, engine, model):
        """Records sharing a title get distinct slugs."""
        service = make_service(model)
        with Session(engine) as session:
            store = SQLStore(session)
            for _ in range(3):
                service.create(store, model(title="Tent"))
            session.commit()

        with Session(engine) as session:
            slugs = [r.slug for r in session.exec(select(model)).all()]
        assert len(set(slugs)) == 3
        assert slugs.count("tent") == 1

    def test_default_strategy_on_not_null_column(self, engine):
        """Autoincrement ids are unknown before INSERT, yet each row gets its own slug."""
        service = SlugService(SlugDescriptor.for_type(Page))
        with Session(engine) as session:
            store = SQLStore(session)
            first = service.create(store, Page(title="Tent"))
            second = service.create(store, Page(title="Tent"))
            session.commit()
            slugs = [first.slug, second.slug]

        assert slugs[0] != slugs[1]
        assert all(len(slug) == 11 for slug in slugs)
        assert hashlib.sha256(b"").hexdigest()[:11] not in slugs

    def test_post_insert_retry_after_race(self, engine):
        """A slug lost to a concurrent writer is retried in a savepoint."""
        with Session(engine) as session:
            session.add(Post(title="Tent", slug="tent"))
            session.commit()

        with Session(engine) as session:
            post = make_service(Post).create(RacingSQLStore(session), Post(title="Tent"))
            session.commit()
            assert post.slug == "tent-100001"

        with Session(engine) as session:
            assert len(session.exec(select(Post)).all()) == 2

    def test_pre_insert_retry_after_race(self, engine):
        """A NOT NULL slug lost to a concurrent writer re-runs the INSERT."""
        with Session(engine) as session:
            session.add(Page(title="Tent", slug="tent"))
            session.commit()

        attempts = []
        with Session(engine) as session:
            page = make_service(Page).create(
                RacingSQLStore(session),
                Page(title="Tent"),
                lambda entity, n: attempts.append(n),
            )
            session.commit()
            assert page.slug == "tent-100001"

        assert attempts == [1, 2]

    def test_non_slug_violation_propagates(self, engine):
        """Violations on other unique columns are not retried."""
        service = make_service(Post)
        with Session(engine) as session:
            store = SQLStore(session)
            service.create(store, Post(title="A", email="dup@example.com"))

            with pytest.raises(UniqueViolation, match="email"):
                service.create(store, Post(title="B", email="dup@example.com"))

    def test_load_repairs_null_slug(self, engine):
        """A row stored without a slug gets one on load."""
        with Session(engine) as session:
            post = Post(title="Old Post")
            session.add(post)
            session.commit()
            post_id = post.id

        with Session(engine) as session:
            loaded = make_service(Post).load(SQLStore(session), post_id)
            session.commit()
            assert loaded.slug == "old-post"

        with Session(engine) as session:
            assert session.get(Post, post_id).slug == "old-post"
