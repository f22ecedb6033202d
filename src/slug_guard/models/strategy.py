"""Slug generation strategies and their options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from slug_guard.core.config import DEFAULT_HEX_LENGTH, DEFAULT_NUMBER_LENGTH


@dataclass(frozen=True)
class IdHex:
    """First ``length`` hex characters of SHA-256 of the record id."""

    length: int = DEFAULT_HEX_LENGTH


@dataclass(frozen=True)
class IdNumber:
    """SHA-256 of the record id reduced modulo ``10**length``."""

    length: int = DEFAULT_NUMBER_LENGTH


@dataclass(frozen=True)
class Attribute:
    """Parameterized value of a field or derived accessor."""

    name: str


Strategy: TypeAlias = IdHex | IdNumber | Attribute

DEFAULT_STRATEGY: Strategy = IdHex()


@dataclass(frozen=True)
class GenerationOptions:
    """Normalized options handed to a generation function."""

    length: int | None = None
    attribute: str | None = None
