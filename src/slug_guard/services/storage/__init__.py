from .memory_store import MemoryStore
from .repository import AsyncRepository, SlugRepository
from .sql_store import SQLStore, create_store_engine
from .store import Store

__all__ = [
    "AsyncRepository",
    "MemoryStore",
    "SQLStore",
    "SlugRepository",
    "Store",
    "create_store_engine",
]
