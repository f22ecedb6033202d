"""Clock and randomness collaborators used for collision suffixes."""

from __future__ import annotations

import secrets
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of wall-clock time."""

    def now_unix_seconds(self) -> int:
        """Return the current Unix time in whole seconds."""
        ...


@runtime_checkable
class RandomSource(Protocol):
    """Source of unpredictable values for collision suffixes."""

    def random_uint(self, bound: int) -> int:
        """Return a uniformly distributed integer in ``[0, bound)``."""
        ...

    def random_hex(self, nbytes: int) -> str:
        """Return ``nbytes`` random bytes as lowercase hex."""
        ...


class SystemClock:
    """Clock backed by ``time.time``."""

    def now_unix_seconds(self) -> int:
        return int(time.time())


class SecureRandomSource:
    """Random source backed by the ``secrets`` module."""

    def random_uint(self, bound: int) -> int:
        return secrets.randbelow(bound)

    def random_hex(self, nbytes: int) -> str:
        return secrets.token_hex(nbytes)
