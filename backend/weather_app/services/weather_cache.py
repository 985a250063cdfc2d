from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Thread-safe in-memory cache with a fixed time-to-live per entry.

    Keys are normalized (trimmed, lower-cased) so "Kyiv" and " kyiv " share an entry.
    Expired entries are dropped on read of their key and on every write.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, tuple[T, float]] = {}
        self._ttl = ttl_seconds
        self._clock = clock

    @staticmethod
    def _key(raw: str) -> str:
        return raw.strip().lower()

    def get(self, key: str) -> T | None:
        with self._lock:
            item = self._items.get(self._key(key))
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                del self._items[self._key(key)]
                return None
            return value

    def set(self, key: str, value: T) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            now = self._clock()
            for stale in [k for k, (_, expires_at) in self._items.items() if now >= expires_at]:
                del self._items[stale]
            self._items[self._key(key)] = (value, now + self._ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
