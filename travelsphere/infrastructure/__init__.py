"""Infrastructure services and cross-cutting utilities."""

from travelsphere.infrastructure.cache import MemoryCache, make_cache_key
from travelsphere.infrastructure.kv_store import (
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    get_kv_store,
    reset_kv_store,
)
from travelsphere.infrastructure.logging import StructuredLogger, get_logger

__all__ = [
    "InMemoryKeyValueStore",
    "MemoryCache",
    "RedisKeyValueStore",
    "StructuredLogger",
    "get_kv_store",
    "get_logger",
    "make_cache_key",
    "reset_kv_store",
]
