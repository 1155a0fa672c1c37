"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache, namespaced by a key prefix.

    - Values are pickled (bytes, dicts and strings round-trip unchanged).
    - All keys are stored under ``key_prefix`` so several instances can
      share one Redis database; `clear()` only removes our own keys.
    - Redis errors are logged and treated as a cache miss.

    Args:
        url: Redis URL (e.g. `redis://:password@localhost:6379/0`).
        ttl_seconds: Default TTL.
        max_concurrent: Max parallel Redis ops.
        key_prefix: Namespace prepended to every key.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 86_400,
        max_concurrent: int = 50,
        key_prefix: str = "debridarr:",
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.key_prefix = key_prefix
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    # --- Context Manager ---
    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=False)
            try:
                await self._client.ping()
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")

        async with self._semaphore:
            try:
                raw = await self._client.get(self._key(key))
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None
        if raw is None:
            log.debug("cache_miss", key=key)
            return None
        try:
            return pickle.loads(raw)
        except pickle.PickleError as e:
            log.error("redis_unpickle_error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        if self._client is None:
            raise RuntimeError("Redis not initialized.")

        expire_time = ttl if ttl is not None else self.default_ttl
        try:
            packed = pickle.dumps(value)
        except (pickle.PickleError, TypeError) as e:
            log.error("pickle_serialize_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                await self._client.setex(self._key(key), expire_time, packed)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                return
        log.debug("cache_set", key=key, ttl=expire_time, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.delete(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.exists(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        """Delete every key under our prefix (SCAN, not FLUSHDB)."""
        if self._client is None:
            return

        removed = 0
        async with self._semaphore:
            try:
                async for raw_key in self._client.scan_iter(match=f"{self.key_prefix}*"):
                    removed += await self._client.delete(raw_key)
            except RedisError as e:
                log.error("redis_clear_error", error=str(e))
                return
        log.warning("redis_cleared", prefix=self.key_prefix, removed=removed)
