"""Tests for CacheDownloadLinkRepository."""

from __future__ import annotations

from unittest.mock import AsyncMock

from debridarr.infrastructure.persistence import (
    CacheDownloadLinkRepository,
    download_cache_key,
)


class TestDownloadCacheKey:
    def test_plain_key(self) -> None:
        key = download_cache_key(user_hash="u", media_id="tt1", torrent_id="t")
        assert key == "download:2:u:tt1:t"

    def test_proxied_key_differs(self) -> None:
        key = download_cache_key(
            user_hash="u", media_id="tt1:1:2", torrent_id="t", proxied=True
        )
        assert key == "download:2:u:mfp:tt1:1:2:t"


class TestCacheDownloadLinkRepository:
    async def test_save_uses_ttl(self, mock_cache: AsyncMock) -> None:
        repo = CacheDownloadLinkRepository(cache=mock_cache, ttl_seconds=120)
        await repo.save("key", "https://cdn/x")
        mock_cache.set.assert_awaited_once_with("key", "https://cdn/x", ttl=120)

    async def test_get_hit(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value="https://cdn/x")
        repo = CacheDownloadLinkRepository(cache=mock_cache)
        assert await repo.get("key") == "https://cdn/x"

    async def test_get_miss(self, mock_cache: AsyncMock) -> None:
        repo = CacheDownloadLinkRepository(cache=mock_cache)
        assert await repo.get("key") is None

    async def test_get_ignores_invalid_entry(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value={"url": "x"})
        repo = CacheDownloadLinkRepository(cache=mock_cache)
        assert await repo.get("key") is None
