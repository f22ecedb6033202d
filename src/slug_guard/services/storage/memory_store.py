"""In-memory store for dry runs and tests."""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

import structlog

from slug_guard.core.config import SLUG_FIELD
from slug_guard.core.errors import UniqueViolation

logger = structlog.get_logger()

T = TypeVar("T")


def collection_name(collection: type) -> str:
    """Table name of a collection, mirroring SQLModel's default naming."""
    return getattr(collection, "__tablename__", None) or collection.__name__.lower()


class MemoryStore:
    """Dict-backed store enforcing unique fields per collection.

    Rows are stored as copies, so an entity changed after a failed write does
    not leak into the store. Savepoints snapshot all rows and restore them
    when the nested block raises. Violation messages use the SQLite format.
    """

    def __init__(self, unique_fields: Mapping[type, Iterable[str]] | None = None) -> None:
        """Initialize an empty store.

        Args:
            unique_fields: Extra unique fields per collection; ``id`` and
                ``slug`` are always unique.
        """
        self._unique_fields = {
            collection: tuple(fields) for collection, fields in (unique_fields or {}).items()
        }
        self._rows: dict[type, dict[Any, Any]] = {}
        self._ids = itertools.count(1)
        self.savepoint_depth = 0

    def exists(self, collection: type, field: str, value: Any) -> bool:
        return any(getattr(row, field, None) == value for row in self._table(collection).values())

    def insert(self, entity: Any) -> None:
        collection = type(entity)
        entity_id = getattr(entity, "id", None)
        if entity_id is not None and entity_id in self._table(collection):
            raise UniqueViolation(f"UNIQUE constraint failed: {collection_name(collection)}.id")
        self._check_unique(entity)
        # Ids are only handed out to rows that make it in.
        if entity_id is None:
            entity.id = next(self._ids)
        self._table(collection)[entity.id] = copy.copy(entity)

    def update(self, entity: Any) -> None:
        self._check_unique(entity)
        self._table(type(entity))[entity.id] = copy.copy(entity)

    def with_savepoint(self, fn: Callable[[], T]) -> T:
        rows = {collection: dict(table) for collection, table in self._rows.items()}
        self.savepoint_depth += 1
        try:
            return fn()
        except Exception:
            self._rows = rows
            raise
        finally:
            self.savepoint_depth -= 1

    def is_persisted(self, entity: Any) -> bool:
        entity_id = getattr(entity, "id", None)
        return entity_id is not None and entity_id in self._table(type(entity))

    def get(self, collection: type, entity_id: Any) -> Any | None:
        row = self._table(collection).get(entity_id)
        return None if row is None else copy.copy(row)

    def all(self, collection: type) -> list[Any]:
        """Copies of every stored row of a collection, in insertion order."""
        return [copy.copy(row) for row in self._table(collection).values()]

    def _table(self, collection: type) -> dict[Any, Any]:
        return self._rows.setdefault(collection, {})

    def _check_unique(self, entity: Any) -> None:
        collection = type(entity)
        entity_id = getattr(entity, "id", None)
        fields = (SLUG_FIELD, *self._unique_fields.get(collection, ()))
        for field in fields:
            value = getattr(entity, field, None)
            if value is None:
                continue
            for row_id, row in self._table(collection).items():
                if row_id != entity_id and getattr(row, field, None) == value:
                    logger.debug("memory_store_violation", field=field, value=value)
                    raise UniqueViolation(
                        f"UNIQUE constraint failed: {collection_name(collection)}.{field}"
                    )
