"""Text parameterization for URL-safe slugs."""

from __future__ import annotations

import re
import unicodedata


class SlugGenerator:
    """Turn free text into URL-safe tokens.

    Provides a unified interface for the text normalization step of slug
    generation, so callers can swap the separator or cap the length without
    re-implementing the transliteration rules.
    """

    def __init__(self, separator: str = "-", max_length: int | None = None) -> None:
        """Initialize slug generator.

        Args:
            separator: Replacement for runs of non-alphanumeric characters.
            max_length: Maximum length for generated slugs. Use None to disable truncation.
        """
        self.separator = separator
        self.max_length = max_length

    def parameterize(self, value: str) -> str:
        """Generate a URL-safe token from free text."""
        ascii_text = self.transliterate(value)
        slug = re.sub(r"[^a-z0-9]+", self.separator, ascii_text.lower())
        return self.truncate(slug.strip(self.separator)).strip(self.separator)

    def truncate(self, value: str) -> str:
        """Truncate a value to the configured max length."""
        if self.max_length is None:
            return value
        return value[: self.max_length]

    @staticmethod
    def transliterate(value: str) -> str:
        """Strip accents and drop characters with no ASCII form.

        Args:
            value: Text to convert.

        Returns:
            The ASCII approximation of ``value``.
        """
        normalized = unicodedata.normalize("NFKD", value)
        return normalized.encode("ascii", "ignore").decode("ascii")


_default_generator = SlugGenerator()


def parameterize(value: str) -> str:
    """Normalize text with the default generator ("Big Red!" -> "big-red")."""
    return _default_generator.parameterize(value)
