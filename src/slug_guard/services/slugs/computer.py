"""Candidate slug computation from an entity's id or attributes."""

from __future__ import annotations

import dataclasses
import hashlib
import inspect
from collections.abc import Callable
from typing import Any

import structlog

from slug_guard.core.config import (
    DEFAULT_HEX_LENGTH,
    DEFAULT_NUMBER_LENGTH,
    MAX_HEX_LENGTH,
    MAX_NUMBER_LENGTH,
    normalize_length,
)
from slug_guard.core.slug import parameterize as default_parameterize
from slug_guard.core.sources import RandomSource, SecureRandomSource
from slug_guard.models import Strategy
from slug_guard.services.slugs.resolver import GENERATION_FUNCTIONS, StrategyResolver

logger = structlog.get_logger()


def id_digest(entity: Any) -> str:
    """SHA-256 hex digest of the entity's id in string form ('' when unassigned)."""
    entity_id = getattr(entity, "id", None)
    text = "" if entity_id is None else str(entity_id)
    return hashlib.sha256(text.encode()).hexdigest()


def stored_fields(entity: Any) -> frozenset[str]:
    """Names of the fields an entity persists.

    Table columns for SQLModel/SQLAlchemy classes, then dataclass fields, then
    pydantic model fields, then instance attributes.
    """
    entity_type = type(entity)
    table = getattr(entity_type, "__table__", None)
    if table is not None:
        return frozenset(table.columns.keys())
    if dataclasses.is_dataclass(entity):
        return frozenset(f.name for f in dataclasses.fields(entity))
    model_fields = getattr(entity_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return frozenset(model_fields)
    return frozenset(getattr(entity, "__dict__", {}))


def _is_accessor(value: Any) -> bool:
    return isinstance(value, (property, staticmethod, classmethod)) or callable(value)


class SlugComputer:
    """Pure candidate computation.

    Id-based results are deterministic once the id is assigned. Before that
    (pre-insert with store-assigned keys) they are random, so records that
    are not inserted yet do not all hash the same empty id. Attribute-based
    results are base candidates only: uniqueness is handled by the collision
    resolver.
    """

    def __init__(
        self,
        parameterize: Callable[[str], str] = default_parameterize,
        random_source: RandomSource | None = None,
    ) -> None:
        """Initialize the computer.

        Args:
            parameterize: Text normalization applied to attribute values.
            random_source: Randomness for fallbacks on entities without an id.
        """
        self._parameterize = parameterize
        self._random = random_source or SecureRandomSource()

    def compute_id_hex(self, entity: Any, length: Any = DEFAULT_HEX_LENGTH) -> str:
        length = normalize_length(length, DEFAULT_HEX_LENGTH, MAX_HEX_LENGTH)
        if getattr(entity, "id", None) is None:
            return self._random.random_hex((length + 1) // 2)[:length]
        return id_digest(entity)[:length]

    def compute_id_number(self, entity: Any, length: Any = DEFAULT_NUMBER_LENGTH) -> str:
        length = normalize_length(length, DEFAULT_NUMBER_LENGTH, MAX_NUMBER_LENGTH)
        if getattr(entity, "id", None) is None:
            return str(self._random.random_uint(10**length))
        return str(int(id_digest(entity), 16) % (10**length))

    def random_number_fallback(self, entity: Any, length: Any = DEFAULT_NUMBER_LENGTH) -> str:
        """Numeric slug used when an attribute yields nothing usable.

        Derived from the id hash when the id is known; random otherwise, so
        records that are not yet inserted do not all share one fallback.
        """
        return self.compute_id_number(entity, length)

    def compute_from_attribute(self, entity: Any, attribute_name: str) -> str:
        """Compute a base candidate from a field or derived accessor.

        Resolution order:
            1. A stored field with that name.
            2. A property or method with that name (methods are called with no args).
            3. Neither: the default id hex slug.

        Args:
            entity: Record to compute the slug for.
            attribute_name: Field or accessor name.

        Returns:
            Parameterized value, or a numeric fallback when the value is None
            or parameterizes to an empty string.
        """
        found, raw_value = self._read_attribute(entity, attribute_name)
        if not found:
            logger.debug("slug_attribute_missing", attribute=attribute_name)
            return self.compute_id_hex(entity)

        if raw_value is None:
            return self.random_number_fallback(entity)

        base_slug = self._parameterize(str(raw_value).strip())
        if not base_slug:
            return self.random_number_fallback(entity)
        return base_slug

    def compute_base_slug(self, entity: Any, strategy: Strategy) -> str:
        """Compute a candidate for a resolved strategy, without uniqueness handling."""
        generate = GENERATION_FUNCTIONS[type(strategy)]
        return generate(self, entity, StrategyResolver.options_for(strategy))

    @staticmethod
    def _read_attribute(entity: Any, name: str) -> tuple[bool, Any]:
        if not name:
            return False, None
        if name in stored_fields(entity):
            return True, getattr(entity, name, None)

        accessor = inspect.getattr_static(type(entity), name, None)
        if accessor is None or not _is_accessor(accessor):
            return False, None

        value = getattr(entity, name)
        if callable(value):
            value = value()
        return True, value
