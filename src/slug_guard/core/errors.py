"""Exception hierarchy for slug generation and persistence."""

from __future__ import annotations


class SlugGuardError(Exception):
    """Base exception for all library errors."""


class ConfigurationError(SlugGuardError):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class StoreError(SlugGuardError):
    """Failure reported by a store backend."""


class UniqueViolation(StoreError):
    """A write would violate a unique constraint or index.

    The driver-level error, when there is one, is chained as ``__cause__``.
    """

    def __init__(self, message: str | None = None) -> None:
        self.message = message or ""
        super().__init__(self.message)
