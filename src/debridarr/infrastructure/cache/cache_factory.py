"""Cache factory - builds the configured CachePort adapter."""

from __future__ import annotations

from typing import Literal

import structlog

from debridarr.domain.ports.cache import CachePort
from debridarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from debridarr.infrastructure.cache.memory_adapter import MemoryAdapter
from debridarr.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis", "memory"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./data/cache",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 86_400,
    max_concurrent: int = 10,
) -> CachePort:
    """Create the cache adapter for ``backend``.

    Args:
        backend: "diskcache" (SQLite), "redis" or "memory".
        directory: Diskcache directory.
        redis_url: Redis connection string.
        ttl_seconds: Default TTL for all backends.
        max_concurrent: Semaphore limit (diskcache; Redis uses 50).

    Raises:
        ValueError: Unknown ``backend``.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    if backend == "redis":
        return RedisAdapter(url=redis_url, ttl_seconds=ttl_seconds, max_concurrent=50)
    if backend == "memory":
        return MemoryAdapter(ttl_seconds=ttl_seconds)
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'diskcache', 'redis' or 'memory'."
    )
