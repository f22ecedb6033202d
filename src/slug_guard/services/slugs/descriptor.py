"""Static, per-entity-type slug configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from slug_guard.core.config import SLUG_FIELD
from slug_guard.models import Attribute, GenerationOptions, Strategy
from slug_guard.services.slugs.resolver import GenerationFunction, StrategyResolver


@dataclass(frozen=True)
class SlugDescriptor:
    """Everything the slug machinery needs to know about one entity type.

    Built once when a repository or service is set up and never mutated, so
    two services for the same type cannot overwrite each other's strategy.

    Attributes:
        entity_type: The entity class; also identifies its collection.
        strategy: Resolved generation strategy.
        generate: Generation function for ``strategy``.
        options: Normalized options for ``generate``.
        has_slug_field: Whether the type persists a slug column.
        slug_nullable: Whether that column accepts NULL at insert time.
    """

    entity_type: type
    strategy: Strategy
    generate: GenerationFunction
    options: GenerationOptions
    has_slug_field: bool
    slug_nullable: bool = True

    @property
    def collection(self) -> str:
        table = getattr(self.entity_type, "__table__", None)
        if table is not None:
            return str(table.name)
        return self.entity_type.__name__

    @property
    def requires_slug_on_insert(self) -> bool:
        """True when the slug must exist before INSERT (NOT NULL slug column)."""
        return self.has_slug_field and not self.slug_nullable

    @property
    def resolves_collisions(self) -> bool:
        """Attribute-derived slugs can collide; id-derived ones cannot."""
        return isinstance(self.strategy, Attribute)

    @classmethod
    def for_type(
        cls,
        entity_type: type,
        declaration: Any = None,
        *,
        has_slug_field: bool | None = None,
        slug_nullable: bool | None = None,
        resolver: StrategyResolver | None = None,
    ) -> SlugDescriptor:
        """Build a descriptor, inspecting the type for its slug column.

        Args:
            entity_type: SQLModel table class, dataclass or plain class.
            declaration: Raw strategy declaration (None for the default).
            has_slug_field: Override for slug column detection.
            slug_nullable: Override for slug column nullability.
            resolver: Strategy resolver to use.

        Returns:
            An immutable descriptor.
        """
        resolver = resolver or StrategyResolver()
        strategy = resolver.resolve_strategy(declaration)
        detected_field, detected_nullable = _inspect_slug_column(entity_type)
        return cls(
            entity_type=entity_type,
            strategy=strategy,
            generate=resolver.resolve(strategy)[0],
            options=StrategyResolver.options_for(strategy),
            has_slug_field=detected_field if has_slug_field is None else has_slug_field,
            slug_nullable=detected_nullable if slug_nullable is None else slug_nullable,
        )


def _inspect_slug_column(entity_type: type) -> tuple[bool, bool]:
    table = getattr(entity_type, "__table__", None)
    if table is not None:
        column = table.columns.get(SLUG_FIELD)
        if column is None:
            return False, True
        return True, bool(column.nullable)

    if dataclasses.is_dataclass(entity_type):
        names = {f.name for f in dataclasses.fields(entity_type)}
        return SLUG_FIELD in names, True

    model_fields = getattr(entity_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return SLUG_FIELD in model_fields, True

    return False, True
