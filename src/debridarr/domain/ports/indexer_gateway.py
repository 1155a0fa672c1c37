"""Port for the torrent indexer aggregator (Jackett)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.torrent import Candidate, IndexerInfo


@runtime_checkable
class IndexerGatewayPort(Protocol):
    """Async interface for listing indexers and searching one of them."""

    async def list_indexers(self) -> list[IndexerInfo]: ...

    async def search_movies(self, media: MediaInfo, indexer_id: str) -> list[Candidate]: ...

    async def search_episodes(
        self, media: MediaInfo, indexer_id: str
    ) -> list[Candidate]: ...

    async def search_seasons(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        """Search whole-series/season packs (no episode filter)."""
        ...
