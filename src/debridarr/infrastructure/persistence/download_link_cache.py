"""Resolved download URL repository backed by CachePort."""

from __future__ import annotations

import structlog

from debridarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def download_cache_key(
    *,
    user_hash: str,
    media_id: str,
    torrent_id: str,
    proxied: bool = False,
) -> str:
    """Build the resolution key shared by the request lock and the cache.

    Format: ``download:2:{user_hash}[:mfp]:{media_id}:{torrent_id}``
    """
    proxy_flag = ":mfp" if proxied else ""
    return f"download:2:{user_hash}{proxy_flag}:{media_id}:{torrent_id}"


class CacheDownloadLinkRepository:
    """Stores resolved download URLs via CachePort (Redis, Diskcache or memory).

    Writes are idempotent: the same key always maps to an equivalent URL.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int = 3600) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def save(self, key: str, url: str) -> None:
        await self.cache.set(key, url, ttl=self.ttl)
        log.debug("download_link_saved", key=key, ttl=self.ttl)

    async def get(self, key: str) -> str | None:
        value = await self.cache.get(key)
        if value is None:
            return None
        if not isinstance(value, str) or not value:
            log.warning("download_link_invalid_entry", key=key)
            return None
        return value
