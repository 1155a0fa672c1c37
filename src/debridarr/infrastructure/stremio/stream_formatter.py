"""Render ranked candidates as Stremio stream entries.

Pure transformation logic, no I/O.
"""

from __future__ import annotations

import math
from urllib.parse import quote

from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.stream import StreamEntry
from debridarr.domain.entities.torrent import Candidate, Quality
from debridarr.infrastructure.ranking.file_selector import select_file

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")

MEDIAFLOW_ICON = "🕵🏼‍♂️"


def format_size(num_bytes: int) -> str:
    """Human readable size: ``0`` -> ``"n/a"``, ``1536`` -> ``"1.5 KB"``."""
    if num_bytes <= 0:
        return "n/a"
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(_SIZE_UNITS) - 1)
    if i == 0:
        return f"{num_bytes} {_SIZE_UNITS[0]}"
    return f"{num_bytes / 1024**i:.1f} {_SIZE_UNITS[i]}"


def quality_label(quality: Quality) -> str:
    return quality.label if quality > 0 else ""


def download_url(
    *,
    base_url: str,
    profile_token: str,
    kind: str,
    media_id: str,
    torrent_id: str,
    filename: str,
) -> str:
    return (
        f"{base_url.rstrip('/')}/{profile_token}/download/{kind}/{media_id}"
        f"/{torrent_id}/{quote(filename, safe='')}"
    )


class StreamFormatter:
    """Builds the name, description rows and URL of each stream.

    Args:
        addon_name: Shown in every stream name.
        short_name: Debrid short name (``"RD"``, ``"ST"``, ...).
        cached_icon: Appended to ``short_name`` for cached candidates.
        uncached_icon: Appended to ``short_name`` for the others.
        mediaflow: Playback goes through a MediaFlow proxy.
    """

    def __init__(
        self,
        *,
        addon_name: str,
        short_name: str,
        cached_icon: str = "+",
        uncached_icon: str = "",
        mediaflow: bool = False,
    ) -> None:
        self.addon_name = addon_name
        self.short_name = short_name
        self.cached_icon = cached_icon
        self.uncached_icon = uncached_icon
        self.mediaflow = mediaflow

    def _name(self, candidate: Candidate) -> str:
        icon = self.cached_icon if candidate.is_cached else self.uncached_icon
        proxy = f"{MEDIAFLOW_ICON} " if self.mediaflow else ""
        label = quality_label(candidate.quality)
        return f"[{self.short_name}{icon}] {proxy}{self.addon_name} {label}"

    def format(
        self,
        candidate: Candidate,
        media: MediaInfo,
        *,
        base_url: str,
        profile_token: str,
    ) -> StreamEntry:
        infos = candidate.infos
        files = infos.files if infos is not None else ()
        file = select_file(files, media.kind, media.season, media.episode)

        rows = [candidate.name]
        if media.kind == "series" and file is not None:
            rows.append(file.name)
        if candidate.info_text:
            rows.append(f"ℹ️ {candidate.info_text}")
        size = file.size if file is not None and file.size else candidate.size
        rows.append(
            " ".join(
                [
                    f"💾{format_size(size)}",
                    f"👥{candidate.seeders}",
                    f"⚙️{candidate.indexer_id}",
                    *(lang.emoji for lang in candidate.languages),
                ]
            )
        )
        if candidate.progress is not None and not candidate.is_cached:
            rows.append(
                f"⬇️ {candidate.progress.percent}% "
                f"{format_size(candidate.progress.speed)}/s"
            )

        if candidate.disabled or infos is None:
            url = "#"
        else:
            url = download_url(
                base_url=base_url,
                profile_token=profile_token,
                kind=media.kind,
                media_id=media.media_id,
                torrent_id=infos.id,
                filename=file.name if file is not None else candidate.name,
            )
        return StreamEntry(
            name=self._name(candidate),
            description_lines=tuple(rows),
            url=url,
            disabled=candidate.disabled,
        )
