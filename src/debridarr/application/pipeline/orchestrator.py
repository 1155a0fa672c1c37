"""Search, narrow, enrich and availability-check the candidates of one media."""

from __future__ import annotations

import time

import structlog

from debridarr.application.pipeline.availability import AvailabilityResolver
from debridarr.application.pipeline.enrichment import TorrentInfoEnricher
from debridarr.application.pipeline.fanout import IndexerFanout
from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.torrent import Candidate
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.infrastructure.ranking.ranker import (
    narrow_search_results,
    promote_packs,
)
from debridarr.infrastructure.request_lock import RequestLock

log = structlog.get_logger(__name__)


def search_lock_key(media_id: str) -> str:
    return f"search:{media_id}"


class TorrentPipeline:
    """Resolution pipeline shared by stream listing and pre-warming.

    Identical media requests are serialized on the request lock; the
    second caller runs after the first one and profits from the warm
    torrent-info and status caches.
    """

    def __init__(
        self,
        *,
        fanout: IndexerFanout,
        enricher: TorrentInfoEnricher,
        availability: AvailabilityResolver,
        lock: RequestLock,
    ) -> None:
        self._fanout = fanout
        self._enricher = enricher
        self._availability = availability
        self._lock = lock

    async def _candidates(
        self, media: MediaInfo, profile: UserProfile
    ) -> list[Candidate]:
        found = await self._fanout.search(media, profile)
        narrowed = narrow_search_results(
            found.candidates,
            year=media.year,
            qualities=profile.qualities,
            exclude_keywords=profile.exclude_keywords,
            prioritize_languages=profile.prioritize_languages,
            max_torrents=profile.max_torrents,
        )
        if media.kind == "series":
            narrowed = promote_packs(
                narrowed, found.packs, profile.prioritize_pack_torrents
            )
        return narrowed

    async def run(
        self,
        media: MediaInfo,
        profile: UserProfile,
        debrid: DebridBackendPort,
    ) -> list[Candidate]:
        """Return the enriched candidates ordered cached-first.

        Raises:
            NoBackendConfigured: Jackett has no indexer.
            NoTorrentInfos: no candidate could be resolved.
        """
        async with self._lock.hold(search_lock_key(media.media_id)):
            t0 = time.perf_counter()
            candidates = await self._candidates(media, profile)
            enriched = await self._enricher.enrich(
                candidates,
                max_torrents=profile.max_torrents,
                timeout_sec=profile.indexer_timeout_sec,
                media_id=media.media_id,
            )
            ordered = await self._availability.apply(debrid, enriched, media, profile)

        log.info(
            "pipeline_done",
            media_id=media.media_id,
            candidates=len(ordered),
            cached=sum(1 for c in ordered if c.is_cached),
            duration_sec=round(time.perf_counter() - t0, 3),
        )
        return ordered
