"""Generic in-memory TTL cache.

Backs the debrid status short-cache and the ``memory`` CachePort backend.
Expiry is checked lazily on read; writes never block.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TtlCache(Generic[K, V]):
    """Dict with a per-entry expiry deadline.

    Not thread-safe, but safe for single-threaded asyncio: every
    operation completes without yielding to the event loop.

    Args:
        ttl_seconds: Default lifetime of an entry.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._data: dict[K, tuple[float, V]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: K) -> V | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: K, value: V, ttl: float | None = None) -> None:
        lifetime = self._ttl if ttl is None else ttl
        self._data[key] = (self._clock() + lifetime, value)

    def delete(self, key: K) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        self._data.clear()

    def purge_expired(self) -> int:
        """Drop all expired entries, return how many were removed."""
        now = self._clock()
        stale = [k for k, (expires_at, _) in self._data.items() if now >= expires_at]
        for key in stale:
            del self._data[key]
        return len(stale)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._data)
