"""Best-effort collision resolution by probing the store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from slug_guard.core.config import (
    DEFAULT_FALLBACK_HEX_BYTES,
    DEFAULT_SUFFIX_DIGITS,
    MAX_SLUG_GENERATION_ATTEMPTS,
    SLUG_FIELD,
)
from slug_guard.core.sources import Clock, RandomSource, SecureRandomSource, SystemClock
from slug_guard.services.slugs.descriptor import SlugDescriptor

if TYPE_CHECKING:
    from slug_guard.services.storage.store import Store

logger = structlog.get_logger()


class CollisionResolver:
    """Turn a base candidate into one the store does not hold yet.

    This is check-then-act: a concurrent writer can still claim the slug
    between the probe and the write. The orchestrator's write-time retry
    covers that window.
    """

    def __init__(
        self,
        store: Store,
        random_source: RandomSource | None = None,
        clock: Clock | None = None,
        max_attempts: int = MAX_SLUG_GENERATION_ATTEMPTS,
        suffix_digits: int = DEFAULT_SUFFIX_DIGITS,
        fallback_hex_bytes: int = DEFAULT_FALLBACK_HEX_BYTES,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Store to probe for existing slugs.
            random_source: Source of suffix randomness.
            clock: Source of the exhaustion timestamp.
            max_attempts: Suffixed candidates probed before giving up.
            suffix_digits: Random suffixes are drawn below ``10**suffix_digits``.
            fallback_hex_bytes: Random bytes in the exhaustion fallback.
        """
        self.store = store
        self.random = random_source or SecureRandomSource()
        self.clock = clock or SystemClock()
        self.max_attempts = max_attempts
        self.suffix_digits = suffix_digits
        self.fallback_hex_bytes = fallback_hex_bytes

    def resolve(self, descriptor: SlugDescriptor, base_candidate: str) -> str:
        """Return ``base_candidate`` or a suffixed variant that is free."""
        if not descriptor.has_slug_field:
            return base_candidate

        if not self._taken(descriptor, base_candidate):
            return base_candidate

        for attempt in range(1, self.max_attempts + 1):
            suffix = self.random.random_uint(10**self.suffix_digits)
            candidate = f"{base_candidate}-{suffix}"
            if not self._taken(descriptor, candidate):
                logger.debug("slug_collision_resolved", slug=candidate, attempts=attempt)
                return candidate

        fallback = self.exhaustion_fallback(base_candidate)
        logger.warning(
            "slug_collision_exhausted",
            collection=descriptor.collection,
            base_slug=base_candidate,
            attempts=self.max_attempts,
            slug=fallback,
        )
        return fallback

    def exhaustion_fallback(self, base_candidate: str) -> str:
        """Timestamp plus random hex; returned without probing."""
        timestamp = self.clock.now_unix_seconds()
        return f"{base_candidate}-{timestamp}-{self.random.random_hex(self.fallback_hex_bytes)}"

    def _taken(self, descriptor: SlugDescriptor, candidate: str) -> bool:
        return self.store.exists(descriptor.entity_type, SLUG_FIELD, candidate)
