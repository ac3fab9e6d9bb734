"""Persisted key-value store with in-memory default and optional Redis backend."""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional

import redis

_logger = logging.getLogger("travelsphere.kv")

_DEFAULT_PREFIX = "travelsphere:"
# Longer than the booking TTL; liveness is decided by the session's expires_at.
_DEFAULT_REDIS_TTL = 3600


class InMemoryKeyValueStore:
    """Thread-safe dict-backed string store."""

    backend = "memory"

    def __init__(self):
        self._store: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class RedisKeyValueStore:
    """Redis-backed store for multi-instance deployments."""

    backend = "redis"

    def __init__(self, redis_url: str, *, ttl: int = _DEFAULT_REDIS_TTL, prefix: str = _DEFAULT_PREFIX, client=None):
        self._ttl = max(1, int(ttl))
        self._prefix = prefix
        self._client = client or redis.Redis.from_url(redis_url, decode_responses=True)
        self._client.ping()

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        return self._client.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self._client.setex(self._key(key), self._ttl, value)

    def remove(self, key: str) -> None:
        self._client.delete(self._key(key))


def _build_store():
    redis_url = os.getenv("REDIS_URL", "").strip()
    if redis_url:
        try:
            store = RedisKeyValueStore(redis_url)
            _logger.info("Key-value store initialized with Redis backend")
            return store
        except (redis.RedisError, ValueError) as exc:
            _logger.warning("Failed to initialize Redis store, fallback to memory store: %s", exc)
    return InMemoryKeyValueStore()


_global_lock = threading.Lock()
_global_store = None


def get_kv_store():
    global _global_store
    with _global_lock:
        if _global_store is None:
            _global_store = _build_store()
        return _global_store


def reset_kv_store() -> None:
    global _global_store
    with _global_lock:
        _global_store = None


__all__ = [
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "get_kv_store",
    "reset_kv_store",
]
