from enum import Enum


class ViolationKind(Enum):
    """Classification of a uniqueness violation."""

    SLUG = "slug"
    OTHER = "other"
