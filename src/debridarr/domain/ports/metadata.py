"""Port for media metadata lookups (title, year, episode list)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from debridarr.domain.entities.media import MediaInfo, MediaQuery


@runtime_checkable
class MetadataProviderPort(Protocol):
    """Resolve a MediaQuery into MediaInfo.

    Implementations raise ``MediaNotFound`` for unknown ids.
    """

    async def get_movie(self, query: MediaQuery, language: str = "") -> MediaInfo: ...

    async def get_episode(self, query: MediaQuery, language: str = "") -> MediaInfo: ...
