"""Core configuration and utilities for slug-guard."""

from slug_guard.core.config import (
    DEFAULT_HEX_LENGTH,
    DEFAULT_NUMBER_LENGTH,
    MAX_HEX_LENGTH,
    MAX_NUMBER_LENGTH,
    MAX_SLUG_GENERATION_ATTEMPTS,
    SLUG_FIELD,
    SlugSettings,
    load_config,
    normalize_length,
)
from slug_guard.core.errors import (
    ConfigurationError,
    SlugGuardError,
    StoreError,
    UniqueViolation,
)
from slug_guard.core.slug import SlugGenerator, parameterize
from slug_guard.core.sources import Clock, RandomSource, SecureRandomSource, SystemClock

__all__ = [
    "DEFAULT_HEX_LENGTH",
    "DEFAULT_NUMBER_LENGTH",
    "MAX_HEX_LENGTH",
    "MAX_NUMBER_LENGTH",
    "MAX_SLUG_GENERATION_ATTEMPTS",
    "SLUG_FIELD",
    "SlugSettings",
    "SlugGenerator",
    "load_config",
    "normalize_length",
    "parameterize",
    "Clock",
    "RandomSource",
    "SecureRandomSource",
    "SystemClock",
    "ConfigurationError",
    "SlugGuardError",
    "StoreError",
    "UniqueViolation",
]
