"""Download resolution use case.

torrent id -> stored infos -> debrid file list -> selected file
-> direct URL (cached per user, media and torrent).
"""

from __future__ import annotations

import time
from typing import Protocol

import structlog

from debridarr.application.pipeline.debrid_files import DebridFileFetcher
from debridarr.application.pipeline.prewarm import NextEpisodePrewarmer
from debridarr.domain.entities.media import parse_media_id
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.stream import DownloadResult
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.domain.ports.download_link_repository import DownloadLinkRepository
from debridarr.domain.ports.torrent_infos import TorrentInfoResolverPort
from debridarr.infrastructure.persistence.download_link_cache import (
    download_cache_key,
)
from debridarr.infrastructure.proxy.mediaflow import apply_mediaflow, mediaflow_enabled
from debridarr.infrastructure.ranking.file_selector import select_file
from debridarr.infrastructure.request_lock import RequestLock

log = structlog.get_logger(__name__)

NOT_READY_VIDEO_PATH = "/static/videos/not_ready.mp4"


class _DebridFactory(Protocol):
    def create(self, profile: UserProfile) -> DebridBackendPort: ...


class _ClientIpResolver(Protocol):
    async def with_public_ip(self, profile: UserProfile) -> UserProfile: ...


def not_ready_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{NOT_READY_VIDEO_PATH}"


class ResolveDownloadUseCase:
    """Turn a stream URL back into a direct, playable debrid link."""

    def __init__(
        self,
        *,
        resolver: TorrentInfoResolverPort,
        files: DebridFileFetcher,
        links: DownloadLinkRepository,
        lock: RequestLock,
        debrids: _DebridFactory,
        client_ip: _ClientIpResolver,
        prewarmer: NextEpisodePrewarmer,
    ) -> None:
        self._resolver = resolver
        self._files = files
        self._links = links
        self._lock = lock
        self._debrids = debrids
        self._client_ip = client_ip
        self._prewarmer = prewarmer

    async def execute(
        self,
        profile: UserProfile,
        kind: str,
        media_id: str,
        torrent_id: str,
        *,
        base_url: str,
    ) -> DownloadResult:
        """Resolve (or reuse) the download URL.

        Raises:
            UnsupportedMediaKind: ``kind`` is neither movie nor series.
            UnknownDebridBackend: the profile names no known backend.
            TorrentInfosNotFound: ``torrent_id`` is unknown or expired.
            InvalidPasskey: the user passkey does not match the pattern.
            NotReady: the backend is still downloading the torrent.
            DebridError: any other backend failure.
        """
        query = parse_media_id(kind, media_id, profile.meta_language)
        profile = await self._client_ip.with_public_ip(profile)
        debrid = self._debrids.create(profile)
        infos = await self._resolver.get_by_id(torrent_id)

        key = download_cache_key(
            user_hash=debrid.user_hash(),
            media_id=media_id,
            torrent_id=torrent_id,
            proxied=mediaflow_enabled(profile),
        )
        async with self._lock.hold(key):
            self._prewarmer.after_download(profile, query, debrid)

            cached = await self._links.get(key)
            if cached is not None:
                log.debug("download_link_cache_hit", media_id=media_id, key=key)
                return DownloadResult(url=cached)

            t0 = time.perf_counter()
            log.info(
                "download_resolve_start",
                media_id=media_id,
                backend=debrid.short_name,
                info_hash=infos.info_hash,
            )
            files = await self._files.fetch(profile, infos, debrid)
            file = select_file(files, query.kind, query.season, query.episode)
            url = await debrid.resolve_download(file) if file is not None else None

            if not url:
                log.info(
                    "download_not_available",
                    media_id=media_id,
                    info_hash=infos.info_hash,
                    files=len(files),
                )
                return DownloadResult(url=not_ready_url(base_url), is_fallback=True)

            url = apply_mediaflow(url, profile)
            await self._links.save(key, url)
            log.info(
                "download_resolved",
                media_id=media_id,
                backend=debrid.short_name,
                duration_sec=round(time.perf_counter() - t0, 3),
            )
            return DownloadResult(url=url)
