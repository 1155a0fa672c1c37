"""Stream listing use case.

Stremio id -> metadata -> indexer fan-out -> torrent infos
-> debrid availability -> ranked StreamEntry list.
"""

from __future__ import annotations

import time
from typing import Protocol

import structlog

from debridarr.application.pipeline.orchestrator import TorrentPipeline
from debridarr.application.pipeline.prewarm import NextEpisodePrewarmer
from debridarr.domain.entities.media import MediaInfo, MediaQuery, parse_media_id
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.stream import StreamEntry
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.domain.ports.metadata import MetadataProviderPort
from debridarr.infrastructure.stremio.stream_formatter import StreamFormatter

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# ---------------------------------------------------------------------------


class _DebridFactory(Protocol):
    def create(self, profile: UserProfile) -> DebridBackendPort: ...


class _ClientIpResolver(Protocol):
    async def with_public_ip(self, profile: UserProfile) -> UserProfile: ...


async def load_media(
    metadata: MetadataProviderPort, query: MediaQuery, language: str
) -> MediaInfo:
    if query.kind == "movie":
        return await metadata.get_movie(query, language)
    return await metadata.get_episode(query, language)


class ListStreamsUseCase:
    """Resolve the ranked stream list of one movie or episode."""

    def __init__(
        self,
        *,
        metadata: MetadataProviderPort,
        pipeline: TorrentPipeline,
        debrids: _DebridFactory,
        client_ip: _ClientIpResolver,
        prewarmer: NextEpisodePrewarmer,
        addon_name: str,
    ) -> None:
        self._metadata = metadata
        self._pipeline = pipeline
        self._debrids = debrids
        self._client_ip = client_ip
        self._prewarmer = prewarmer
        self._addon_name = addon_name

    async def execute(
        self,
        profile: UserProfile,
        kind: str,
        media_id: str,
        *,
        base_url: str,
        profile_token: str,
    ) -> list[StreamEntry]:
        """List streams, best first.

        Raises:
            UnsupportedMediaKind: ``kind`` is neither movie nor series.
            UnknownDebridBackend: the profile names no known backend.
            MediaNotFound: the metadata provider does not know the id.
            NoBackendConfigured: Jackett has no indexer.
            NoTorrentInfos: no candidate could be resolved.
        """
        t0 = time.perf_counter()
        query = parse_media_id(kind, media_id, profile.meta_language)
        profile = await self._client_ip.with_public_ip(profile)
        debrid = self._debrids.create(profile)

        media = await load_media(self._metadata, query, profile.meta_language)
        candidates = await self._pipeline.run(media, profile, debrid)
        if not candidates:
            return []

        self._prewarmer.after_listing(profile, media, debrid)

        formatter = StreamFormatter(
            addon_name=self._addon_name,
            short_name=debrid.short_name,
            cached_icon=debrid.cached_icon,
            uncached_icon=debrid.uncached_icon,
            mediaflow=profile.enable_mediaflow,
        )
        streams = [
            formatter.format(
                candidate, media, base_url=base_url, profile_token=profile_token
            )
            for candidate in candidates
        ]
        log.info(
            "streams_listed",
            media_id=media_id,
            backend=debrid.short_name,
            streams=len(streams),
            duration_sec=round(time.perf_counter() - t0, 3),
        )
        return streams
