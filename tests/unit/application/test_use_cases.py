"""Tests for ListStreamsUseCase and ResolveDownloadUseCase."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from debridarr.application.pipeline import DebridFileFetcher
from debridarr.application.use_cases import ListStreamsUseCase, ResolveDownloadUseCase
from debridarr.application.use_cases.resolve_download import not_ready_url
from debridarr.domain.entities import (
    Candidate,
    DebridFile,
    DownloadResult,
    MediaInfo,
    Quality,
    TorrentFile,
    TorrentInfos,
    UserProfile,
)
from debridarr.domain.exceptions import (
    NotReady,
    TorrentInfosNotFound,
    UnsupportedMediaKind,
)
from debridarr.infrastructure.cache.memory_adapter import MemoryAdapter
from debridarr.infrastructure.persistence.download_link_cache import (
    CacheDownloadLinkRepository,
    download_cache_key,
)
from debridarr.infrastructure.request_lock import RequestLock

BASE_URL = "http://addon.local"


def _passthrough_ip() -> MagicMock:
    client_ip = MagicMock()
    client_ip.with_public_ip = AsyncMock(side_effect=lambda profile: profile)
    return client_ip


def _debrids(debrid) -> MagicMock:
    debrids = MagicMock()
    debrids.create = MagicMock(return_value=debrid)
    return debrids


# ---------------------------------------------------------------------------
# ListStreamsUseCase
# ---------------------------------------------------------------------------


def _list_use_case(
    fake_debrid, media: MediaInfo, candidates: list[Candidate]
) -> tuple[ListStreamsUseCase, MagicMock]:
    metadata = MagicMock()
    metadata.get_movie = AsyncMock(return_value=media)
    metadata.get_episode = AsyncMock(return_value=media)
    pipeline = MagicMock()
    pipeline.run = AsyncMock(return_value=candidates)
    prewarmer = MagicMock()
    use_case = ListStreamsUseCase(
        metadata=metadata,
        pipeline=pipeline,
        debrids=_debrids(fake_debrid),
        client_ip=_passthrough_ip(),
        prewarmer=prewarmer,
        addon_name="Debridarr",
    )
    return use_case, prewarmer


class TestListStreams:
    async def test_movie_streams(
        self, fake_debrid, movie_media: MediaInfo, candidate: Candidate
    ) -> None:
        use_case, prewarmer = _list_use_case(fake_debrid, movie_media, [candidate])

        streams = await use_case.execute(
            UserProfile(), "movie", "tt0133093", base_url=BASE_URL, profile_token="tok"
        )

        assert len(streams) == 1
        assert streams[0].name == "[FK] Debridarr 1080p"
        assert streams[0].url == (
            f"{BASE_URL}/tok/download/movie/tt0133093/id-aaaaaaaa/Movie.2020.1080p.mkv"
        )
        prewarmer.after_listing.assert_called_once()

    async def test_no_candidates(self, fake_debrid, movie_media: MediaInfo) -> None:
        use_case, prewarmer = _list_use_case(fake_debrid, movie_media, [])
        streams = await use_case.execute(
            UserProfile(), "movie", "tt0133093", base_url=BASE_URL, profile_token="tok"
        )
        assert streams == []
        prewarmer.after_listing.assert_not_called()

    async def test_series_uses_episode_metadata(
        self, fake_debrid, episode_media: MediaInfo
    ) -> None:
        hit = Candidate(
            name="Show.S01.Pack",
            indexer_id="eztv",
            quality=Quality.HD_720,
            is_cached=True,
            infos=TorrentInfos(
                id="pack",
                info_hash="h",
                files=(
                    TorrentFile("Show.S01E01.mkv", 10),
                    TorrentFile("Show.S01E02.mkv", 5),
                ),
            ),
        )
        use_case, _ = _list_use_case(fake_debrid, episode_media, [hit])
        streams = await use_case.execute(
            UserProfile(),
            "series",
            "tt0944947:1:2",
            base_url=BASE_URL,
            profile_token="tok",
        )
        assert streams[0].name == "[FK+] Debridarr 720p"
        assert "Show.S01E02.mkv" in streams[0].description_lines
        assert streams[0].url.endswith("/pack/Show.S01E02.mkv")

    async def test_unsupported_kind(self, fake_debrid, movie_media: MediaInfo) -> None:
        use_case, _ = _list_use_case(fake_debrid, movie_media, [])
        with pytest.raises(UnsupportedMediaKind):
            await use_case.execute(
                UserProfile(), "channel", "x", base_url=BASE_URL, profile_token="tok"
            )


# ---------------------------------------------------------------------------
# ResolveDownloadUseCase
# ---------------------------------------------------------------------------


class _InfosStore:
    def __init__(self, infos: TorrentInfos | None) -> None:
        self.infos = infos

    async def get_by_id(self, torrent_id: str) -> TorrentInfos:
        if self.infos is None:
            raise TorrentInfosNotFound(torrent_id)
        return self.infos

    async def get_torrent_file(self, infos: TorrentInfos) -> bytes:
        return b""


def _download_use_case(
    fake_debrid,
    store: _InfosStore | None = None,
    *,
    links: CacheDownloadLinkRepository | None = None,
    lock: RequestLock | None = None,
) -> tuple[ResolveDownloadUseCase, MagicMock]:
    if store is None:
        store = _InfosStore(
            TorrentInfos(id="t1", info_hash="abc", magnet_url="magnet:?xt=urn:btih:abc")
        )
    if links is None:
        links = CacheDownloadLinkRepository(MemoryAdapter())
    prewarmer = MagicMock()
    use_case = ResolveDownloadUseCase(
        resolver=store,
        files=DebridFileFetcher(resolver=store),
        links=links,
        lock=lock if lock is not None else RequestLock(),
        debrids=_debrids(fake_debrid),
        client_ip=_passthrough_ip(),
        prewarmer=prewarmer,
    )
    return use_case, prewarmer


class TestResolveDownload:
    async def test_resolves_largest_movie_file(self, fake_debrid) -> None:
        fake_debrid.files = [
            DebridFile("1", "sample.mkv", size=10),
            DebridFile("2", "Movie.mkv", size=1000),
        ]
        use_case, prewarmer = _download_use_case(fake_debrid)

        result = await use_case.execute(
            UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL
        )

        assert result.url == "https://cdn.fake/file.mkv"
        assert not result.is_fallback
        assert [f.name for f in fake_debrid.resolved] == ["Movie.mkv"]
        assert fake_debrid.added_magnets == ["magnet:?xt=urn:btih:abc"]
        prewarmer.after_download.assert_called_once()

    async def test_episode_file_selected(self, fake_debrid) -> None:
        fake_debrid.files = [
            DebridFile("1", "Show.S01E01.mkv", size=1000),
            DebridFile("2", "Show.S01E02.mkv", size=900),
        ]
        use_case, _ = _download_use_case(fake_debrid)
        await use_case.execute(
            UserProfile(), "series", "tt0944947:1:2", "t1", base_url=BASE_URL
        )
        assert [f.name for f in fake_debrid.resolved] == ["Show.S01E02.mkv"]

    async def test_second_request_served_from_cache(self, fake_debrid) -> None:
        fake_debrid.files = [DebridFile("1", "Movie.mkv", size=1000)]
        use_case, _ = _download_use_case(fake_debrid)

        first = await use_case.execute(
            UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL
        )
        second = await use_case.execute(
            UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL
        )

        assert first == second
        assert len(fake_debrid.resolved) == 1
        assert len(fake_debrid.added_magnets) == 1

    async def test_no_url_falls_back_to_placeholder(self, fake_debrid) -> None:
        fake_debrid.files = [DebridFile("1", "Movie.mkv", size=1000)]
        fake_debrid.download_url = None
        use_case, _ = _download_use_case(fake_debrid)

        result = await use_case.execute(
            UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL + "/"
        )

        assert result.is_fallback
        assert result.url == f"{BASE_URL}/static/videos/not_ready.mp4"

    async def test_no_files_falls_back(self, fake_debrid) -> None:
        use_case, _ = _download_use_case(fake_debrid)
        result = await use_case.execute(
            UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL
        )
        assert result == DownloadResult(url=not_ready_url(BASE_URL), is_fallback=True)
        assert fake_debrid.resolved == []

    async def test_mediaflow_rewrites_url(self, fake_debrid) -> None:
        fake_debrid.files = [DebridFile("1", "Movie.mkv", size=1000)]
        use_case, _ = _download_use_case(fake_debrid)
        profile = UserProfile(
            enable_mediaflow=True,
            mediaflow_proxy_url="http://mfp.local/",
            mediaflow_api_password="pw",
        )
        result = await use_case.execute(
            profile, "movie", "tt0133093", "t1", base_url=BASE_URL
        )
        assert result.url.startswith("http://mfp.local/proxy/stream?d=https%3A%2F%2Fcdn.fake")
        assert result.url.endswith("&api_password=pw")

    async def test_unknown_torrent_id(self, fake_debrid) -> None:
        use_case, _ = _download_use_case(fake_debrid, _InfosStore(None))
        with pytest.raises(TorrentInfosNotFound):
            await use_case.execute(
                UserProfile(), "movie", "tt0133093", "missing", base_url=BASE_URL
            )

    async def test_not_ready_propagates_without_caching(self, fake_debrid) -> None:
        fake_debrid.files = [DebridFile("1", "Movie.mkv", size=1000)]
        fake_debrid.resolve_download = AsyncMock(side_effect=NotReady())
        links = CacheDownloadLinkRepository(MemoryAdapter())
        lock = RequestLock()
        use_case, _ = _download_use_case(fake_debrid, links=links, lock=lock)
        key = download_cache_key(
            user_hash="userhash",
            media_id="tt0133093",
            torrent_id="t1",
            proxied=False,
        )

        with pytest.raises(NotReady):
            await use_case.execute(
                UserProfile(), "movie", "tt0133093", "t1", base_url=BASE_URL
            )

        assert await links.get(key) is None
        assert not lock.is_held(key)
        assert lock.held_count == 0
