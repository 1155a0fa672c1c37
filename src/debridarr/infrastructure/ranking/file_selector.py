"""Pick the playable file inside a multi-file torrent."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar


class _SizedFile(Protocol):
    name: str
    size: int


F = TypeVar("F", bound=_SizedFile)


def search_episode_file(files: Sequence[F], season: int, episode: int) -> F | None:
    """Find an episode file using progressively looser name patterns.

    Tried in order against upper-cased names: ``S01E002``, ``S01E02``,
    ``102`` (season + episode), ``02`` (episode only).
    """
    patterns = (
        f"S{season:02d}E{episode:03d}",
        f"S{season:02d}E{episode:02d}",
        f"{season}{episode:02d}",
        f"{episode:02d}",
    )
    for pattern in patterns:
        for file in files:
            if pattern in file.name.upper():
                return file
    return None


def select_file(
    files: Sequence[F], kind: str, season: int = 0, episode: int = 0
) -> F | None:
    """Largest file for movies; matching episode (else largest) for series."""
    by_size = sorted(files, key=lambda f: f.size, reverse=True)
    if not by_size:
        return None
    if kind == "series":
        return search_episode_file(by_size, season, episode) or by_size[0]
    return by_size[0]
