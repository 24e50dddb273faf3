from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from erp_backend.cache.base import Cache


@dataclass
class _Entry:
    value: str
    expires_at: float


class MemoryCache(Cache):
    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: dict[str, _Entry] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            if entry.expires_at <= self._clock():
                self._store.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._store[key] = _Entry(value=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._store if key.startswith(prefix)]
            for key in keys:
                del self._store[key]
        return len(keys)

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._store)
