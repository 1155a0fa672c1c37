"""Port for resolving technical torrent metadata."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from debridarr.domain.entities.torrent import Candidate, TorrentInfos


@runtime_checkable
class TorrentInfoResolverPort(Protocol):
    """Fetch, parse and remember the .torrent (or magnet) behind a candidate."""

    async def resolve(self, candidate: Candidate) -> TorrentInfos:
        """Resolve and store infos; raises on any fetch/parse failure."""
        ...

    async def get_by_id(self, torrent_id: str) -> TorrentInfos:
        """Load previously resolved infos; raises TorrentInfosNotFound."""
        ...

    async def get_torrent_file(self, infos: TorrentInfos) -> bytes:
        """Return the raw .torrent bytes of previously resolved infos."""
        ...
