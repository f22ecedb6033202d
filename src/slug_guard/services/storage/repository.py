"""Async repositories over SQLModel sessions."""

from __future__ import annotations

import asyncio
import threading
import weakref
from collections.abc import Callable
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import Session, select

from slug_guard.core.config import SLUG_FIELD, SlugSettings
from slug_guard.services.slugs.descriptor import SlugDescriptor
from slug_guard.services.slugs.service import BeforeInsertHook, SlugService

from .sql_store import SQLStore, uses_single_connection

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")

# Shared by every repository on the same engine.
_connection_locks: weakref.WeakKeyDictionary[Engine, threading.Lock] = weakref.WeakKeyDictionary()


def _connection_lock(engine: Engine) -> threading.Lock | None:
    if not uses_single_connection(engine):
        return None
    return _connection_locks.setdefault(engine, threading.Lock())


class AsyncRepository(Generic[T]):
    """Wrap sync SQLModel session work for async callers.

    Sessions on engines with a single shared connection (in-memory SQLite)
    run one at a time; other engines run them concurrently.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = _connection_lock(engine)

    async def _run_session(self, fn: Callable[[Session], T]) -> T:
        """Run a sync function inside a Session on a worker thread."""

        def _run() -> T:
            with self._lock or nullcontext(), Session(self._engine) as session:
                return fn(session)

        return await asyncio.to_thread(_run)


class SlugRepository(AsyncRepository[Any]):
    """Create and load records of one SQLModel table with managed slugs.

    Each call runs in its own session and commits on success. The strategy is
    fixed when the repository is built.
    """

    def __init__(
        self,
        engine: Engine,
        model: type,
        declaration: Any = None,
        settings: SlugSettings | None = None,
        **service_kwargs: Any,
    ) -> None:
        """Initialize the repository.

        Args:
            engine: SQLAlchemy engine, ideally from ``create_store_engine``.
            model: SQLModel table class.
            declaration: Strategy declaration; defaults to the one configured
                for the table in ``settings``.
            settings: Slug settings.
            **service_kwargs: Extra ``SlugService`` arguments (random source, clock...).
        """
        super().__init__(engine)
        self.model = model
        settings = settings or SlugSettings()
        if declaration is None:
            declaration = settings.strategy_for(str(model.__table__.name))
        descriptor = SlugDescriptor.for_type(model, declaration)
        self.service = SlugService(descriptor, settings, **service_kwargs)

    async def create(self, entity: Any, before_insert: BeforeInsertHook | None = None) -> Any:
        """Insert a record and commit it together with its slug."""

        def _create(session: Session) -> Any:
            self.service.create(SQLStore(session), entity, before_insert)
            session.commit()
            session.refresh(entity)
            return entity

        return await self._run_session(_create)

    async def get(self, entity_id: Any) -> Any | None:
        """Load a record by id, repairing a missing slug."""

        def _get(session: Session) -> Any | None:
            entity = self.service.load(SQLStore(session), entity_id)
            if entity is None:
                return None
            session.commit()
            session.refresh(entity)
            return entity

        return await self._run_session(_get)

    async def get_by_slug(self, slug: str) -> Any | None:
        """Load a record by its slug."""

        def _get(session: Session) -> Any | None:
            column = getattr(self.model, SLUG_FIELD)
            return session.exec(select(self.model).where(column == slug)).first()

        return await self._run_session(_get)
