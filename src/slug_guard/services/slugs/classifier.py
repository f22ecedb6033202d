"""Classification of uniqueness violations across database backends."""

from __future__ import annotations

import re

from slug_guard.models import ViolationKind

# "slug" as a standalone word matches SQLite "table.slug", PostgreSQL "Key (slug)=" and
# MySQL "for key 'slug'"; "_on_slug" matches index names like "index_posts_on_slug".
# Underscores are word characters, so "canonical_slug" and "_on_parent_slug" stay unmatched.
SLUG_VIOLATION_PATTERN = re.compile(r"\bslug\b|_on_slug\b")

POSTGRES_UNIQUE_VIOLATION = "23505"
# ER_DUP_ENTRY, ER_DUP_ENTRY_WITH_KEY_NAME, ER_DUP_UNIQUE
MYSQL_UNIQUE_VIOLATIONS = frozenset({1062, 1586, 1169})
# SQLITE_CONSTRAINT_UNIQUE, SQLITE_CONSTRAINT_PRIMARYKEY
SQLITE_UNIQUE_VIOLATIONS = frozenset({2067, 1555})


def _messages(error: BaseException) -> list[str]:
    messages = [str(error)]
    cause = error.__cause__
    if cause is not None:
        messages.append(str(cause))
    return [m.lower() for m in messages if m]


def is_unique_violation(driver_error: BaseException | None) -> bool:
    """Whether a raw DB-API error reports a unique constraint violation.

    Args:
        driver_error: The DB-API exception (``IntegrityError.orig`` in SQLAlchemy).

    Returns:
        True for PostgreSQL SQLSTATE 23505, MySQL duplicate-key codes and
        SQLite UNIQUE constraint messages.
    """
    if driver_error is None:
        return False

    sqlstate = getattr(driver_error, "pgcode", None) or getattr(driver_error, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == POSTGRES_UNIQUE_VIOLATION

    sqlite_code = getattr(driver_error, "sqlite_errorcode", None)
    if sqlite_code is not None:
        return sqlite_code in SQLITE_UNIQUE_VIOLATIONS

    args = getattr(driver_error, "args", ())
    if args and isinstance(args[0], int):
        return args[0] in MYSQL_UNIQUE_VIOLATIONS

    message = str(driver_error).lower()
    return message.startswith("unique constraint failed") or "is not unique" in message


class ViolationClassifier:
    """Decide whether a uniqueness violation concerns the slug column.

    False negatives are safe (the error propagates instead of being retried);
    false positives cause pointless retries, so matching is strict.
    """

    def classify(self, error: BaseException) -> ViolationKind:
        if any(SLUG_VIOLATION_PATTERN.search(m) for m in _messages(error)):
            return ViolationKind.SLUG
        return ViolationKind.OTHER

    def is_slug_violation(self, error: BaseException) -> bool:
        return self.classify(error) is ViolationKind.SLUG
