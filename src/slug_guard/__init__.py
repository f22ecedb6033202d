"""slug-guard.

Short, URL-safe, non-enumerable slugs for persisted records, kept unique
under concurrent writers by the database's own unique constraint.
"""

from slug_guard.models import Attribute, IdHex, IdNumber
from slug_guard.services.slugs import SlugDescriptor, SlugService, StrategyResolver

__version__ = "0.1.0"
__all__ = [
    "Attribute",
    "IdHex",
    "IdNumber",
    "SlugDescriptor",
    "SlugService",
    "StrategyResolver",
    "__version__",
]
