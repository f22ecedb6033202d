"""SQLModel-backed store with savepoint isolation."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from sqlalchemy import event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select

from slug_guard.core.errors import StoreError, UniqueViolation
from slug_guard.services.slugs.classifier import is_unique_violation

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

T = TypeVar("T")


def create_store_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine whose transactions support SAVEPOINT.

    pysqlite defers BEGIN until the first DML statement, which breaks nested
    transactions. For SQLite the driver's own transaction handling is turned
    off and SQLAlchemy emits ``BEGIN IMMEDIATE`` itself: a transaction that
    probes for a slug and then writes would otherwise have to upgrade its read
    lock, which SQLite refuses when another writer is waiting. In-memory
    SQLite shares a single connection so every session sees the same
    database; callers must not use that connection from two threads at once
    (``AsyncRepository`` serializes its sessions for such engines).

    Args:
        url: SQLAlchemy database URL.
        **kwargs: Extra ``create_engine`` arguments.

    Returns:
        Configured engine.
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url:
            kwargs.setdefault("poolclass", StaticPool)

    engine = create_engine(url, **kwargs)

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection: Any, _record: Any) -> None:
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def uses_single_connection(engine: Engine) -> bool:
    """True when every session of ``engine`` shares one DBAPI connection."""
    return isinstance(engine.pool, StaticPool)


class SQLStore:
    """Store implementation over a SQLModel session.

    The caller owns the session and its outer transaction; this class only
    flushes and opens savepoints, it never commits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, collection: type, field: str, value: Any) -> bool:
        column = getattr(collection, field)
        statement = select(column).where(column == value).limit(1)
        with self._translate_errors():
            return self.session.exec(statement).first() is not None

    def insert(self, entity: Any) -> None:
        with self._translate_errors():
            self.session.add(entity)
            self.session.flush()

    def update(self, entity: Any) -> None:
        with self._translate_errors():
            self.session.add(entity)
            self.session.flush()

    def with_savepoint(self, fn: Callable[[], T]) -> T:
        with self._translate_errors(), self.session.begin_nested():
            return fn()

    def is_persisted(self, entity: Any) -> bool:
        state = sa_inspect(entity, raiseerr=False)
        return bool(state is not None and state.persistent)

    def get(self, collection: type, entity_id: Any) -> Any | None:
        with self._translate_errors():
            return self.session.get(collection, entity_id)

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            # Chain the driver error, not the wrapper: its text lists every column in the SQL.
            if is_unique_violation(exc.orig):
                raise UniqueViolation(str(exc.orig)) from exc.orig
            raise StoreError(str(exc.orig)) from exc.orig
        except SQLAlchemyError as exc:
            logger.debug("store_error", error=str(exc))
            raise StoreError(str(exc)) from exc
