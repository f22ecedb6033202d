"""Base protocol for the persistence layer behind slug assignment."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class Store(Protocol):
    """Protocol for record stores.

    Implementations must enforce uniqueness of the slug column themselves and
    report violations as ``UniqueViolation`` with the driver error chained as
    ``__cause__``.
    """

    def exists(self, collection: type, field: str, value: Any) -> bool:
        """Check whether any record of a collection has ``field == value``.

        Args:
            collection: Entity type identifying the collection.
            field: Field name to match.
            value: Value to look for.

        Returns:
            True if at least one record matches.
        """
        ...

    def insert(self, entity: Any) -> None:
        """Insert a new record.

        Raises:
            UniqueViolation: If a unique constraint rejects the row.
        """
        ...

    def update(self, entity: Any) -> None:
        """Write the current state of an already inserted record.

        Raises:
            UniqueViolation: If a unique constraint rejects the row.
        """
        ...

    def with_savepoint(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` inside a nested transaction.

        A failure rolls back only the nested scope and is re-raised; the
        enclosing transaction stays usable.
        """
        ...

    def is_persisted(self, entity: Any) -> bool:
        """Whether the store currently holds ``entity`` as an inserted row."""
        ...

    def get(self, collection: type, entity_id: Any) -> Any | None:
        """Load a record by id, or None if absent."""
        ...
