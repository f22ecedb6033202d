"""Slug generation, collision resolution and the write-time retry protocol."""

from slug_guard.services.slugs.classifier import (
    SLUG_VIOLATION_PATTERN,
    ViolationClassifier,
    is_unique_violation,
)
from slug_guard.services.slugs.collision import CollisionResolver
from slug_guard.services.slugs.computer import SlugComputer, id_digest
from slug_guard.services.slugs.descriptor import SlugDescriptor
from slug_guard.services.slugs.orchestrator import PersistenceOrchestrator, slug_is_blank
from slug_guard.services.slugs.resolver import (
    GENERATION_FUNCTIONS,
    GenerationFunction,
    StrategyResolver,
)
from slug_guard.services.slugs.service import SlugService

__all__ = [
    "GENERATION_FUNCTIONS",
    "SLUG_VIOLATION_PATTERN",
    "CollisionResolver",
    "GenerationFunction",
    "PersistenceOrchestrator",
    "SlugComputer",
    "SlugDescriptor",
    "SlugService",
    "StrategyResolver",
    "ViolationClassifier",
    "id_digest",
    "is_unique_violation",
    "slug_is_blank",
]
