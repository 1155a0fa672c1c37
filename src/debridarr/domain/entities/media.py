"""Domain entities describing the requested media.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, cast

from debridarr.domain.exceptions import UnsupportedMediaKind

MediaKind = Literal["movie", "series"]

MEDIA_KINDS: tuple[str, ...] = ("movie", "series")


@dataclass(frozen=True)
class MediaQuery:
    """Parsed Stremio media identifier.

    Movies: ``"tt0133093"``
    Series: ``"tt0944947:1:2"`` (season 1, episode 2)
    """

    media_id: str
    external_id: str
    kind: MediaKind
    season: int = 0
    episode: int = 0
    language: str = ""


@dataclass(frozen=True)
class EpisodeRef:
    """Season/episode coordinates inside a series episode list."""

    season: int
    episode: int


@dataclass(frozen=True)
class MediaInfo:
    """Metadata resolved for a MediaQuery by the metadata provider."""

    query: MediaQuery
    name: str
    year: int | None = None
    episodes: tuple[EpisodeRef, ...] = field(default_factory=tuple)

    @property
    def media_id(self) -> str:
        return self.query.media_id

    @property
    def kind(self) -> MediaKind:
        return self.query.kind

    @property
    def season(self) -> int:
        return self.query.season

    @property
    def episode(self) -> int:
        return self.query.episode

    def next_episode(self) -> EpisodeRef | None:
        """Return the episode following the current one, if listed."""
        current = EpisodeRef(self.season, self.episode)
        try:
            index = self.episodes.index(current)
        except ValueError:
            # Unknown current episode: the first listed one is "next".
            return self.episodes[0] if self.episodes else None
        if index + 1 < len(self.episodes):
            return self.episodes[index + 1]
        return None


def _to_int(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def parse_media_id(kind: str, media_id: str, language: str = "") -> MediaQuery:
    """Split a composite Stremio id into its parts.

    Raises:
        UnsupportedMediaKind: ``kind`` is neither movie nor series.
    """
    if kind not in MEDIA_KINDS:
        raise UnsupportedMediaKind(f"Unsupported type {kind}")

    parts = media_id.split(":")
    return MediaQuery(
        media_id=media_id,
        external_id=parts[0],
        kind=cast(MediaKind, kind),
        season=_to_int(parts[1] if len(parts) > 1 else None),
        episode=_to_int(parts[2] if len(parts) > 2 else None),
        language=language,
    )
