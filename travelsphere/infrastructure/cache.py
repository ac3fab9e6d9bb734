"""Thread-safe in-memory cache with TTL and simple eviction."""

from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Optional


class MemoryCache:
    def __init__(
        self,
        default_ttl: float = 300.0,
        max_size: int = 500,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, tuple[Any, float]] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and self._clock() > entry[1]:
                del self._store[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry[0]

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                # 淘汰最早过期的 10%
                oldest = sorted(self._store, key=lambda k: self._store[k][1])
                for k in oldest[: self._max_size // 10 + 1]:
                    del self._store[k]
            self._store[key] = (value, self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._store),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


def make_cache_key(*parts: Any) -> str:
    raw = json.dumps(parts, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.md5(raw.encode()).hexdigest()


__all__ = ["MemoryCache", "make_cache_key"]
