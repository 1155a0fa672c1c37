"""In-process cache adapter backed by TtlCache (no persistence)."""

from __future__ import annotations

from typing import Any

import structlog

from debridarr.infrastructure.cache.ttl_cache import TtlCache

log = structlog.get_logger(__name__)


class MemoryAdapter:
    """CachePort implementation for tests and single-instance deployments.

    Values live in the process heap and vanish on restart.

    Args:
        ttl_seconds: Default TTL for `set()` without explicit value.
    """

    def __init__(self, ttl_seconds: int = 86_400) -> None:
        self.default_ttl = ttl_seconds
        self._store: TtlCache[str, Any] = TtlCache(ttl_seconds)
        log.info("memory_cache_adapter_init", default_ttl=ttl_seconds)

    # --- Context Manager ---
    async def __aenter__(self) -> MemoryAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._store.clear()

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        value = self._store.get(key)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        self._store.set(key, value, ttl=expire_time)
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        return self._store.delete(key)

    async def exists(self, key: str) -> bool:
        return key in self._store

    async def clear(self) -> None:
        self._store.clear()
        log.warning("cache_cleared", backend="memory")
