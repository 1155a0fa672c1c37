"""Domain entities for torrent candidates and their debrid state.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class Quality(IntEnum):
    """Vertical resolution buckets (value = pixel height, 0 = unknown)."""

    UNKNOWN = 0
    SD_360 = 360
    SD_480 = 480
    HD_720 = 720
    HD_1080 = 1080
    UHD_4K = 2160

    @property
    def label(self) -> str:
        if self is Quality.UNKNOWN:
            return "Unknown"
        if self is Quality.UHD_4K:
            return "4K"
        return f"{self.value}p"


@dataclass(frozen=True)
class Language:
    """Audio language detected in a release name."""

    value: str  # "multi", "french", "english", ...
    emoji: str  # "🇫🇷"
    iso639: str = ""  # "fr", "" for multi


@dataclass(frozen=True)
class IndexerInfo:
    """A Jackett indexer and the media kinds it can search."""

    id: str
    title: str
    movie_available: bool = True
    series_available: bool = True

    def available_for(self, kind: str) -> bool:
        if kind == "movie":
            return self.movie_available
        if kind == "series":
            return self.series_available
        return False


@dataclass(frozen=True)
class TorrentFile:
    """A file inside a torrent (name relative to the torrent root)."""

    name: str
    size: int = 0


@dataclass(frozen=True)
class TorrentInfos:
    """Technical metadata of a torrent, resolved once per candidate.

    ``id`` is the opaque key used to fetch the infos (and the raw
    ``.torrent`` bytes) again when a download is requested.
    """

    id: str
    info_hash: str
    files: tuple[TorrentFile, ...] = field(default_factory=tuple)
    private: bool = False
    magnet_url: str | None = None
    size: int = 0


@dataclass(frozen=True)
class TransferProgress:
    """Download progress reported by the debrid backend."""

    percent: int = 0
    speed: int = 0  # bytes per second


@dataclass(frozen=True)
class HashStatus:
    """Cache status of one info hash on a debrid backend."""

    info_hash: str
    status: str  # "cached", "downloaded", "queued", "unknown", ...
    # None when the backend does not list the files of cached torrents.
    files: tuple[TorrentFile, ...] | None = None

    @property
    def is_cached(self) -> bool:
        return self.status in ("cached", "downloaded")


@dataclass(frozen=True)
class DebridFile:
    """A file as listed by the debrid backend after adding a torrent."""

    id: str
    name: str
    size: int = 0
    url: str = ""
    ready: bool = False
    status: str = ""


@dataclass
class Candidate:
    """A torrent search hit flowing through the resolution pipeline.

    Mutated in place: enrichment sets ``infos``, availability sets
    ``is_cached``/``status``/``progress``/``disabled``/``info_text``.
    """

    name: str
    indexer_id: str
    link: str = ""
    magnet_url: str | None = None
    size: int = 0
    seeders: int = 0
    quality: Quality = Quality.UNKNOWN
    languages: tuple[Language, ...] = field(default_factory=tuple)
    year: int | None = None

    infos: TorrentInfos | None = None
    is_cached: bool = False
    status: str | None = None
    progress: TransferProgress | None = None
    disabled: bool = False
    info_text: str = ""

    @property
    def info_hash(self) -> str | None:
        return self.infos.info_hash if self.infos is not None else None

    @property
    def private(self) -> bool:
        return self.infos.private if self.infos is not None else False

    def sort_value(self, field_name: str) -> int:
        """Numeric value of a sortable field (quality, size, seeders)."""
        if field_name == "quality":
            return int(self.quality)
        if field_name == "size":
            return self.size
        if field_name == "seeders":
            return self.seeders
        raise ValueError(f"Unknown sort field: {field_name!r}")
