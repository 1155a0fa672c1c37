"""Speculative resolution of the episode following the one being watched."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import replace
from typing import Any

import structlog

from debridarr.application.pipeline.debrid_files import DebridFileFetcher
from debridarr.application.pipeline.orchestrator import TorrentPipeline
from debridarr.domain.entities.media import MediaInfo, MediaQuery
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.exceptions import NotReady
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.domain.ports.metadata import MetadataProviderPort

log = structlog.get_logger(__name__)


def next_episode_query(media: MediaInfo) -> MediaQuery | None:
    ref = media.next_episode()
    if ref is None:
        return None
    query = media.query
    return replace(
        query,
        media_id=f"{query.external_id}:{ref.season}:{ref.episode}",
        season=ref.season,
        episode=ref.episode,
    )


class NextEpisodePrewarmer:
    """Runs the pipeline for the next episode in the background.

    This warms the torrent-info and status caches so the next listing
    is fast.  With ``force_cache_next_episode`` the best enabled
    candidate is also added to the debrid account when none is cached.
    Tasks are fire-and-forget; :meth:`drain` waits for them on shutdown.
    """

    def __init__(
        self,
        *,
        metadata: MetadataProviderPort,
        pipeline: TorrentPipeline,
        files: DebridFileFetcher,
    ) -> None:
        self._metadata = metadata
        self._pipeline = pipeline
        self._files = files
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def prepare(
        self, profile: UserProfile, media: MediaInfo, debrid: DebridBackendPort
    ) -> None:
        """Resolve the next episode; never raises."""
        try:
            query = next_episode_query(media)
            if query is None:
                return
            next_media = await self._metadata.get_episode(query, profile.meta_language)
            candidates = await self._pipeline.run(next_media, profile, debrid)

            if not profile.force_cache_next_episode or not candidates:
                return
            if any(c.is_cached for c in candidates):
                return
            best = next((c for c in candidates if not c.disabled), None)
            if best is None or best.infos is None:
                return
            log.info(
                "next_episode_force_cache",
                media_id=media.media_id,
                next_media_id=next_media.media_id,
                info_hash=best.info_hash,
            )
            await self._files.fetch(profile, best.infos, debrid)
        except NotReady:
            pass
        except Exception:
            log.warning(
                "next_episode_prewarm_failed",
                media_id=media.media_id,
                exc_info=True,
            )

    async def _prepare_from_query(
        self, profile: UserProfile, query: MediaQuery, debrid: DebridBackendPort
    ) -> None:
        try:
            media = await self._metadata.get_episode(query, profile.meta_language)
        except Exception:
            log.warning(
                "next_episode_prewarm_failed",
                media_id=query.media_id,
                exc_info=True,
            )
            return
        await self.prepare(profile, media, debrid)

    def after_listing(
        self, profile: UserProfile, media: MediaInfo, debrid: DebridBackendPort
    ) -> None:
        """Warm caches only; a listing never adds torrents to the account."""
        if media.kind != "series":
            return
        self._spawn(
            self.prepare(replace(profile, force_cache_next_episode=False), media, debrid)
        )

    def after_download(
        self, profile: UserProfile, query: MediaQuery, debrid: DebridBackendPort
    ) -> None:
        if query.kind != "series" or not profile.force_cache_next_episode:
            return
        self._spawn(self._prepare_from_query(profile, query, debrid))

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for pending tasks, cancelling those still running at ``timeout``."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            log.info("next_episode_prewarm_cancelled", tasks=len(still_running))
