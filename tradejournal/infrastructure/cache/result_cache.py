"""TTL cache for expensive analysis results.

The analysis service receives a cache by injection. `InMemoryResultCache`
evicts lazily on read; `NullResultCache` disables caching without changing
any call site.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol


class ResultCache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...


@dataclass
class _Entry:
    value: Any
    stored_at: float
    ttl_seconds: float


class InMemoryResultCache:
    """Process-local cache. A `None` return means miss or expired."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > entry.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=self._clock(), ttl_seconds=float(ttl_seconds))

    def invalidate(self, prefix: str = "") -> int:
        """Drop every key starting with `prefix`; returns how many were removed."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)


class NullResultCache:
    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        return None
