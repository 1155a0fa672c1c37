"""Tests for StreamFormatter and size formatting."""

from __future__ import annotations

import pytest

from debridarr.domain.entities import (
    Candidate,
    Language,
    MediaInfo,
    Quality,
    TorrentFile,
    TorrentInfos,
    TransferProgress,
)
from debridarr.infrastructure.stremio.stream_formatter import (
    MEDIAFLOW_ICON,
    StreamFormatter,
    download_url,
    format_size,
)

FRENCH = Language("french", "🇫🇷", "fr")


def _formatter(**kwargs) -> StreamFormatter:
    kwargs.setdefault("addon_name", "Debridarr")
    kwargs.setdefault("short_name", "RD")
    return StreamFormatter(**kwargs)


def _candidate(**kwargs) -> Candidate:
    kwargs.setdefault("name", "Movie.1999.1080p")
    kwargs.setdefault("indexer_id", "yts")
    kwargs.setdefault(
        "infos",
        TorrentInfos(id="t1", info_hash="h", files=(TorrentFile("Movie 1999.mkv", 1536),)),
    )
    return Candidate(**kwargs)


class TestFormatSize:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "n/a"),
            (512, "512 Bytes"),
            (1536, "1.5 KB"),
            (5 * 1024**3, "5.0 GB"),
            (3 * 1024**5, "3072.0 TB"),
        ],
    )
    def test_units(self, size: int, expected: str) -> None:
        assert format_size(size) == expected


class TestDownloadUrl:
    def test_filename_quoted(self) -> None:
        url = download_url(
            base_url="http://h/",
            profile_token="tok",
            kind="movie",
            media_id="tt1",
            torrent_id="t1",
            filename="A B/C.mkv",
        )
        assert url == "http://h/tok/download/movie/tt1/t1/A%20B%2FC.mkv"


class TestStreamFormatter:
    def test_movie_entry(self, movie_media: MediaInfo) -> None:
        candidate = _candidate(
            quality=Quality.HD_1080, seeders=42, languages=(FRENCH,), is_cached=True
        )
        entry = _formatter(cached_icon="+").format(
            candidate, movie_media, base_url="http://h", profile_token="tok"
        )
        assert entry.name == "[RD+] Debridarr 1080p"
        assert entry.description_lines == (
            "Movie.1999.1080p",
            "💾1.5 KB 👥42 ⚙️yts 🇫🇷",
        )
        assert entry.url == "http://h/tok/download/movie/tt0133093/t1/Movie%201999.mkv"
        assert not entry.disabled

    def test_unknown_quality_has_no_label(self, movie_media: MediaInfo) -> None:
        entry = _formatter().format(
            _candidate(), movie_media, base_url="http://h", profile_token="tok"
        )
        assert entry.name == "[RD] Debridarr "

    def test_episode_row_and_progress(self, episode_media: MediaInfo) -> None:
        candidate = _candidate(
            name="Show.S01",
            infos=TorrentInfos(
                id="p",
                info_hash="h",
                files=(
                    TorrentFile("Show.S01E01.mkv", 2048),
                    TorrentFile("Show.S01E02.mkv", 1024),
                ),
            ),
            progress=TransferProgress(percent=40, speed=2048),
        )
        entry = _formatter().format(
            candidate, episode_media, base_url="http://h", profile_token="tok"
        )
        assert entry.description_lines[1] == "Show.S01E02.mkv"
        assert entry.description_lines[2].startswith("💾1.0 KB")
        assert entry.description_lines[-1] == "⬇️ 40% 2.0 KB/s"

    def test_disabled_entry_has_no_url(self, movie_media: MediaInfo) -> None:
        candidate = _candidate(disabled=True, info_text="Passkey required")
        entry = _formatter().format(
            candidate, movie_media, base_url="http://h", profile_token="tok"
        )
        assert entry.url == "#"
        assert entry.disabled
        assert "ℹ️ Passkey required" in entry.description_lines

    def test_mediaflow_icon(self, movie_media: MediaInfo) -> None:
        entry = _formatter(mediaflow=True).format(
            _candidate(quality=Quality.HD_720),
            movie_media,
            base_url="http://h",
            profile_token="tok",
        )
        assert entry.name == f"[RD] {MEDIAFLOW_ICON} Debridarr 720p"
