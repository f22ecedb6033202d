"""Strategy resolution: declarative config -> generation function + options."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from slug_guard.core.config import (
    DEFAULT_HEX_LENGTH,
    DEFAULT_NUMBER_LENGTH,
    MAX_HEX_LENGTH,
    MAX_NUMBER_LENGTH,
    normalize_length,
)
from slug_guard.models import (
    DEFAULT_STRATEGY,
    Attribute,
    GenerationOptions,
    IdHex,
    IdNumber,
    Strategy,
)

if TYPE_CHECKING:
    from slug_guard.services.slugs.computer import SlugComputer

logger = structlog.get_logger()

GenerationFunction = Callable[["SlugComputer", Any, GenerationOptions], str]

_HEX_NAMES = frozenset({"hex", "hex_string", "string"})
_NUMBER_NAMES = frozenset({"number", "numeric"})


def _generate_id_hex(computer: SlugComputer, entity: Any, options: GenerationOptions) -> str:
    return computer.compute_id_hex(entity, options.length)


def _generate_id_number(computer: SlugComputer, entity: Any, options: GenerationOptions) -> str:
    return computer.compute_id_number(entity, options.length)


def _generate_from_attribute(
    computer: SlugComputer, entity: Any, options: GenerationOptions
) -> str:
    return computer.compute_from_attribute(entity, options.attribute or "")


GENERATION_FUNCTIONS: dict[type, GenerationFunction] = {
    IdHex: _generate_id_hex,
    IdNumber: _generate_id_number,
    Attribute: _generate_from_attribute,
}


class StrategyResolver:
    """Map strategy declarations onto the closed set of strategies.

    Accepted declarations:
        - a Strategy instance;
        - ``"id"`` for the default hex strategy, any other string for an attribute;
        - ``{"id": "hex" | "number", "length": N}``;
        - ``{"attribute": name, "length": N}``.

    Anything else falls back to ``IdHex(11)``. Slug generation must never
    block entity creation, so resolution never raises.
    """

    def resolve(self, declaration: Any) -> tuple[GenerationFunction, GenerationOptions]:
        """Resolve a declaration to the function to invoke and its options."""
        strategy = self.resolve_strategy(declaration)
        return GENERATION_FUNCTIONS[type(strategy)], self.options_for(strategy)

    def resolve_strategy(self, declaration: Any) -> Strategy:
        """Resolve a declaration to a Strategy value."""
        if isinstance(declaration, (IdHex, IdNumber, Attribute)):
            return self._normalize(declaration)

        if isinstance(declaration, str):
            name = declaration.strip()
            if name == "id":
                return IdHex()
            if name:
                return Attribute(name)

        if isinstance(declaration, Mapping):
            strategy = self._from_mapping(declaration)
            if strategy is not None:
                return strategy

        logger.debug("strategy_fallback", declaration=repr(declaration))
        return DEFAULT_STRATEGY

    @staticmethod
    def options_for(strategy: Strategy) -> GenerationOptions:
        """Build the options bag handed to the generation function."""
        if isinstance(strategy, Attribute):
            return GenerationOptions(attribute=strategy.name)
        return GenerationOptions(length=strategy.length)

    def _from_mapping(self, declaration: Mapping[str, Any]) -> Strategy | None:
        length = declaration.get("length")

        if "id" in declaration:
            kind = str(declaration["id"]).strip().lower()
            if kind in _NUMBER_NAMES:
                return IdNumber(normalize_length(length, DEFAULT_NUMBER_LENGTH, MAX_NUMBER_LENGTH))
            if kind in _HEX_NAMES:
                return IdHex(normalize_length(length, DEFAULT_HEX_LENGTH, MAX_HEX_LENGTH))
            return None

        attribute = declaration.get("attribute")
        if isinstance(attribute, str) and attribute.strip():
            return Attribute(attribute.strip())
        return None

    @staticmethod
    def _normalize(strategy: Strategy) -> Strategy:
        if isinstance(strategy, IdHex):
            return IdHex(normalize_length(strategy.length, DEFAULT_HEX_LENGTH, MAX_HEX_LENGTH))
        if isinstance(strategy, IdNumber):
            return IdNumber(
                normalize_length(strategy.length, DEFAULT_NUMBER_LENGTH, MAX_NUMBER_LENGTH)
            )
        if not strategy.name.strip():
            return DEFAULT_STRATEGY
        return strategy
