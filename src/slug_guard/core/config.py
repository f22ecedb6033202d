"""Configuration schemas and loading for slug generation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from slug_guard.core.errors import ConfigurationError

DEFAULT_HEX_LENGTH = 11
DEFAULT_NUMBER_LENGTH = 6

# SHA-256 produces 64 hex characters
MAX_HEX_LENGTH = 64
# 10**18 fits in a signed 64-bit integer
MAX_NUMBER_LENGTH = 18

MAX_SLUG_GENERATION_ATTEMPTS = 10
DEFAULT_SUFFIX_DIGITS = 6
DEFAULT_FALLBACK_HEX_BYTES = 4

SLUG_FIELD = "slug"


def normalize_length(value: Any, default: int, maximum: int) -> int:
    """Coerce a configured length into ``1..maximum``.

    Non-numeric and non-positive values fall back to ``default``; values above
    ``maximum`` are clamped.
    """
    if isinstance(value, bool):
        return default
    try:
        length = int(value)
    except (TypeError, ValueError):
        return default
    if length <= 0:
        return default
    return min(length, maximum)


class SlugSettings(BaseModel):
    """Runtime settings for slug generation and the retry protocol.

    Attributes:
        max_attempts: Total attempts for collision probing and write retries.
        suffix_digits: Digits in the random collision suffix (``10**n`` bound).
        fallback_hex_bytes: Random bytes in the exhaustion fallback suffix.
        database_url: SQLAlchemy URL used by the CLI and repositories.
        strategies: Raw strategy declarations keyed by collection name.
    """

    max_attempts: int = Field(default=MAX_SLUG_GENERATION_ATTEMPTS, ge=1)
    suffix_digits: int = Field(default=DEFAULT_SUFFIX_DIGITS, ge=1, le=MAX_NUMBER_LENGTH)
    fallback_hex_bytes: int = Field(default=DEFAULT_FALLBACK_HEX_BYTES, ge=1)
    database_url: str = "sqlite://"
    strategies: dict[str, Any] = Field(default_factory=dict)

    def strategy_for(self, collection: str) -> Any:
        """Get the raw strategy declaration for a collection (None means default)."""
        return self.strategies.get(collection)


def load_config(path: str | Path) -> SlugSettings:
    """Load and validate settings from a YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated SlugSettings instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the document is not a mapping.
        pydantic.ValidationError: If a setting is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top of {config_path}",
            "Use 'key: value' pairs such as 'max_attempts: 10'.",
        )

    return SlugSettings.model_validate(data)
