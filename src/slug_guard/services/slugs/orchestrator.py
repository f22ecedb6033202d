"""Retry protocol coordinating slug assignment with store writes.

Two timing models are supported:

- Post-insert assignment (nullable slug column): the row is inserted first and
  the slug is written in a follow-up UPDATE by ``set_slug``.
- Pre-insert assignment (NOT NULL slug column): the slug exists before the
  INSERT, so ``retry_insert`` retries the INSERT itself.

Every attempt runs inside a savepoint so a unique violation only rolls back
that attempt and leaves the caller's transaction usable.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from slug_guard.core.config import MAX_SLUG_GENERATION_ATTEMPTS, SLUG_FIELD
from slug_guard.core.errors import StoreError, UniqueViolation
from slug_guard.services.slugs.classifier import ViolationClassifier
from slug_guard.services.slugs.collision import CollisionResolver
from slug_guard.services.slugs.computer import SlugComputer
from slug_guard.services.slugs.descriptor import SlugDescriptor

if TYPE_CHECKING:
    from slug_guard.services.storage.store import Store

logger = structlog.get_logger()

T = TypeVar("T")


def slug_is_blank(entity: Any) -> bool:
    """True when the entity's slug is missing, None or whitespace."""
    value = getattr(entity, SLUG_FIELD, None)
    return value is None or not str(value).strip()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "slug_retry",
        attempt=retry_state.attempt_number,
        error=str(error) if error else None,
    )


class PersistenceOrchestrator:
    """Assign slugs and reconcile them with the store's unique constraint."""

    def __init__(
        self,
        store: Store,
        computer: SlugComputer | None = None,
        collision_resolver: CollisionResolver | None = None,
        classifier: ViolationClassifier | None = None,
        max_attempts: int = MAX_SLUG_GENERATION_ATTEMPTS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Store the entity is written to.
            computer: Candidate computation.
            collision_resolver: Pre-write uniqueness probing.
            classifier: Decides which violations concern the slug.
            max_attempts: Total attempts per write before the violation is raised.
        """
        self.store = store
        self.computer = computer or SlugComputer()
        self.collision_resolver = collision_resolver or CollisionResolver(
            store, max_attempts=max_attempts
        )
        self.classifier = classifier or ViolationClassifier()
        self.max_attempts = max_attempts

    def compute_slug(self, entity: Any, descriptor: SlugDescriptor) -> str:
        """Compute a candidate and, for attribute strategies, probe it free."""
        base_slug = descriptor.generate(self.computer, entity, descriptor.options)
        if descriptor.resolves_collisions:
            return self.collision_resolver.resolve(descriptor, base_slug)
        return base_slug

    def set_slug(self, entity: Any, descriptor: SlugDescriptor) -> bool:
        """Assign and save a slug for an inserted entity whose slug is blank.

        Args:
            entity: An entity the store already holds.
            descriptor: Slug configuration of the entity's type.

        Returns:
            True if a slug was written, False for the no-op cases.

        Raises:
            UniqueViolation: On a non-slug violation, or on a slug violation
                once ``max_attempts`` attempts have failed.
        """
        if not descriptor.has_slug_field or not slug_is_blank(entity):
            return False

        for attempt in self._retrying(self._is_slug_violation):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    setattr(entity, SLUG_FIELD, None)
                setattr(entity, SLUG_FIELD, self.compute_slug(entity, descriptor))
                self.store.with_savepoint(lambda: self.store.update(entity))

        logger.debug(
            "slug_assigned",
            collection=descriptor.collection,
            slug=getattr(entity, SLUG_FIELD),
        )
        return True

    def retry_insert(
        self,
        entity: Any,
        descriptor: SlugDescriptor,
        insert_fn: Callable[[int], T],
    ) -> T:
        """Run an INSERT that needs a slug up front, retrying on slug collisions.

        ``insert_fn`` receives the 1-based attempt number and is invoked once
        per attempt, so any side effects it has run again on every retry.
        Guard non-idempotent work on ``attempt_number``.

        Args:
            entity: The entity being inserted.
            descriptor: Slug configuration of the entity's type.
            insert_fn: Performs the insert (and any pre-insert hooks).

        Returns:
            Whatever ``insert_fn`` returns.

        Raises:
            UniqueViolation: On a non-slug violation, on a violation raised
                after the entity was already inserted, or once ``max_attempts``
                attempts have failed.
        """
        if not descriptor.requires_slug_on_insert:
            return insert_fn(1)

        if slug_is_blank(entity):
            setattr(entity, SLUG_FIELD, self.compute_slug(entity, descriptor))

        persisted_at_failure = False

        def should_retry(error: BaseException) -> bool:
            # A violation after the row went in came from some other write.
            return self._is_slug_violation(error) and not persisted_at_failure

        def run_attempt(attempt_number: int) -> T:
            nonlocal persisted_at_failure
            persisted_at_failure = False
            try:
                return insert_fn(attempt_number)
            except UniqueViolation:
                persisted_at_failure = self.store.is_persisted(entity)
                raise

        for attempt in self._retrying(should_retry):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    setattr(entity, SLUG_FIELD, self.compute_slug(entity, descriptor))
                result = self.store.with_savepoint(lambda: run_attempt(attempt_number))

        return result

    def repair(self, entity: Any, descriptor: SlugDescriptor) -> bool:
        """Fill in a blank persisted slug on a loaded entity.

        Repair is opportunistic: store failures are logged and swallowed so
        loading never fails because of it.

        Returns:
            True if a slug was written.
        """
        if not descriptor.has_slug_field or not slug_is_blank(entity):
            return False

        try:
            return self.set_slug(entity, descriptor)
        except StoreError as exc:
            logger.warning(
                "slug_repair_failed",
                collection=descriptor.collection,
                entity_id=getattr(entity, "id", None),
                error=str(exc),
            )
            setattr(entity, SLUG_FIELD, None)
            return False

    def _is_slug_violation(self, error: BaseException) -> bool:
        return isinstance(error, UniqueViolation) and self.classifier.is_slug_violation(error)

    def _retrying(self, should_retry: Callable[[BaseException], bool]) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(should_retry),
            before_sleep=_log_retry,
            reraise=True,
        )
