"""Shared test fixtures for the Debridarr test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar
from unittest.mock import AsyncMock

import pytest

from debridarr.domain.entities import (
    Candidate,
    DebridFile,
    EpisodeRef,
    HashStatus,
    MediaInfo,
    Quality,
    TorrentFile,
    TorrentInfos,
    TransferProgress,
    UserProfile,
    parse_media_id,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


def make_infos(info_hash: str = "a" * 40, **kwargs: Any) -> TorrentInfos:
    """TorrentInfos with a single video file unless ``files`` is given."""
    kwargs.setdefault("files", (TorrentFile("Movie.2020.1080p.mkv", 2_000_000_000),))
    kwargs.setdefault("id", f"id-{info_hash[:8]}")
    return TorrentInfos(info_hash=info_hash, **kwargs)


def make_candidate(name: str = "Movie.2020.1080p.WEB.x264", **kwargs: Any) -> Candidate:
    kwargs.setdefault("indexer_id", "yts")
    kwargs.setdefault("link", f"https://jackett.local/dl/{name}")
    return Candidate(name=name, **kwargs)


@pytest.fixture()
def movie_media() -> MediaInfo:
    return MediaInfo(query=parse_media_id("movie", "tt0133093"), name="The Matrix", year=1999)


@pytest.fixture()
def episode_media() -> MediaInfo:
    return MediaInfo(
        query=parse_media_id("series", "tt0944947:1:2"),
        name="Game of Thrones",
        year=2011,
        episodes=(EpisodeRef(1, 1), EpisodeRef(1, 2), EpisodeRef(1, 3)),
    )


@pytest.fixture()
def profile() -> UserProfile:
    return UserProfile(debrid_id="realdebrid", debrid_api_key="secret", use_stremthru=False)


@pytest.fixture()
def candidate() -> Candidate:
    return make_candidate(
        quality=Quality.HD_1080,
        size=2_000_000_000,
        seeders=25,
        infos=make_infos(),
    )


# ---------------------------------------------------------------------------
# Port fakes
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    return cache


@dataclass
class FakeDebrid:
    """In-memory DebridBackendPort with call recording."""

    id: ClassVar[str] = "fake"
    name: ClassVar[str] = "Fake Debrid"
    config_fields: ClassVar[list[dict[str, Any]]] = []

    short_name: str = "FK"
    cache_check_available: bool = True
    cached_icon: str = "+"
    uncached_icon: str = ""

    statuses: dict[str, HashStatus] = field(default_factory=dict)
    progress: dict[str, TransferProgress] = field(default_factory=dict)
    files: list[DebridFile] = field(default_factory=list)
    download_url: str | None = "https://cdn.fake/file.mkv"
    check_error: Exception | None = None
    account: str = "userhash"

    check_calls: list[list[str]] = field(default_factory=list)
    added_magnets: list[str] = field(default_factory=list)
    added_files: list[tuple[bytes, str]] = field(default_factory=list)
    resolved: list[DebridFile] = field(default_factory=list)

    async def check_cache(self, hashes: list[str]) -> dict[str, HashStatus]:
        self.check_calls.append(list(hashes))
        if self.check_error is not None:
            raise self.check_error
        return {h: self.statuses[h] for h in hashes if h in self.statuses}

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]:
        return {h: self.progress[h] for h in hashes if h in self.progress}

    async def add_magnet(self, magnet_url: str) -> str:
        self.added_magnets.append(magnet_url)
        return "handle-magnet"

    async def add_torrent_file(self, buffer: bytes, info_hash: str) -> str:
        self.added_files.append((buffer, info_hash))
        return "handle-file"

    async def list_files(self, handle: str) -> list[DebridFile]:
        return list(self.files)

    async def resolve_download(self, file: DebridFile) -> str | None:
        self.resolved.append(file)
        return self.download_url

    def user_hash(self) -> str:
        return self.account


@pytest.fixture()
def fake_debrid() -> FakeDebrid:
    return FakeDebrid()
