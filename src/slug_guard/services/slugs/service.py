"""Per-entity-type facade over the slug machinery."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from slug_guard.core.config import SLUG_FIELD, SlugSettings
from slug_guard.core.slug import parameterize as default_parameterize
from slug_guard.core.sources import Clock, RandomSource, SecureRandomSource, SystemClock
from slug_guard.services.slugs.classifier import ViolationClassifier
from slug_guard.services.slugs.collision import CollisionResolver
from slug_guard.services.slugs.computer import SlugComputer
from slug_guard.services.slugs.descriptor import SlugDescriptor
from slug_guard.services.slugs.orchestrator import PersistenceOrchestrator

if TYPE_CHECKING:
    from slug_guard.services.storage.store import Store

logger = structlog.get_logger()

BeforeInsertHook = Callable[[Any, int], None]


class SlugService:
    """Lifecycle operations for one entity type.

    Usage:
        service = SlugService(SlugDescriptor.for_type(Article, "title"))
        article = service.create(store, Article(title="Big Red Backpack"))
        article.slug  # "big-red-backpack"
    """

    def __init__(
        self,
        descriptor: SlugDescriptor,
        settings: SlugSettings | None = None,
        parameterize: Callable[[str], str] = default_parameterize,
        random_source: RandomSource | None = None,
        clock: Clock | None = None,
        classifier: ViolationClassifier | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            descriptor: Slug configuration of the entity type.
            settings: Attempt limits and suffix sizes.
            parameterize: Text normalization for attribute slugs.
            random_source: Randomness for suffixes and fallbacks.
            clock: Time source for the exhaustion fallback.
            classifier: Violation classifier.
        """
        self.descriptor = descriptor
        self.settings = settings or SlugSettings()
        self.random = random_source or SecureRandomSource()
        self.clock = clock or SystemClock()
        self.classifier = classifier or ViolationClassifier()
        self.computer = SlugComputer(parameterize, self.random)

    def orchestrator(self, store: Store) -> PersistenceOrchestrator:
        """Build an orchestrator bound to ``store``."""
        resolver = CollisionResolver(
            store,
            random_source=self.random,
            clock=self.clock,
            max_attempts=self.settings.max_attempts,
            suffix_digits=self.settings.suffix_digits,
            fallback_hex_bytes=self.settings.fallback_hex_bytes,
        )
        return PersistenceOrchestrator(
            store,
            computer=self.computer,
            collision_resolver=resolver,
            classifier=self.classifier,
            max_attempts=self.settings.max_attempts,
        )

    def create(
        self,
        store: Store,
        entity: Any,
        before_insert: BeforeInsertHook | None = None,
    ) -> Any:
        """Insert ``entity`` and make sure it ends up with a unique slug.

        NOT NULL slug columns get their slug before the INSERT, which is
        retried on slug collisions; ``before_insert(entity, attempt_number)``
        then runs once per attempt. Nullable columns get the slug in a
        follow-up write.

        Args:
            store: Store to write to.
            entity: New entity.
            before_insert: Optional hook run right before each INSERT attempt.

        Returns:
            The inserted entity.
        """
        orchestrator = self.orchestrator(store)

        def insert(attempt_number: int) -> None:
            if before_insert is not None:
                before_insert(entity, attempt_number)
            store.insert(entity)

        orchestrator.retry_insert(entity, self.descriptor, insert)
        orchestrator.set_slug(entity, self.descriptor)

        logger.info(
            "entity_created",
            collection=self.descriptor.collection,
            entity_id=getattr(entity, "id", None),
            slug=self.get_slug(entity),
        )
        return entity

    def assign(self, store: Store, entity: Any) -> bool:
        """Assign a slug to an inserted entity if it has none yet."""
        return self.orchestrator(store).set_slug(entity, self.descriptor)

    def load(self, store: Store, entity_id: Any) -> Any | None:
        """Load an entity, repairing a blank persisted slug on the way."""
        entity = store.get(self.descriptor.entity_type, entity_id)
        if entity is not None:
            self.orchestrator(store).repair(entity, self.descriptor)
        return entity

    def compute_slug(self, store: Store, entity: Any) -> str:
        """Compute the slug ``entity`` would get right now, without writing it."""
        return self.orchestrator(store).compute_slug(entity, self.descriptor)

    def get_slug(self, entity: Any) -> str:
        """The entity's slug: the stored value, or a computed one for types without a column.

        Computed slugs are not checked for uniqueness.
        """
        if self.descriptor.has_slug_field:
            return getattr(entity, SLUG_FIELD, None) or ""
        return self.descriptor.generate(self.computer, entity, self.descriptor.options)
