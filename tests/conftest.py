"""Shared fixtures: deterministic clocks, random sources and record types."""

from dataclasses import dataclass

import pytest


@dataclass
class Article:
    """Plain record with a slug column, stored in a MemoryStore."""

    title: str | None = None
    id: int | None = None
    slug: str | None = None


@dataclass
class Note:
    """Plain record without a slug column."""

    title: str | None = None
    id: int | None = None


class FixedClock:
    """Clock frozen at a given Unix time."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def now_unix_seconds(self) -> int:
        return self.now


class SequenceRandom:
    """Random source returning queued values, then counting up."""

    def __init__(self, values: list[int] | None = None, hex_value: str = "deadbeef") -> None:
        self.values = list(values or [])
        self.hex_value = hex_value
        self.calls: list[int] = []
        self._next = 100_000

    def random_uint(self, bound: int) -> int:
        self.calls.append(bound)
        if self.values:
            return self.values.pop(0) % bound
        self._next += 1
        return self._next % bound

    def random_hex(self, nbytes: int) -> str:
        return self.hex_value[: nbytes * 2]


@pytest.fixture
def fixed_clock():
    """Clock frozen at 1_700_000_000."""
    return FixedClock()


@pytest.fixture
def sequence_random():
    """Predictable random source."""
    return SequenceRandom()
