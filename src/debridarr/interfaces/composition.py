"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from debridarr.application.factories.profile_factory import ProfileFactory
from debridarr.application.pipeline import (
    AvailabilityResolver,
    DebridFileFetcher,
    IndexerFanout,
    NextEpisodePrewarmer,
    TorrentInfoEnricher,
    TorrentPipeline,
)
from debridarr.application.use_cases import ListStreamsUseCase, ResolveDownloadUseCase
from debridarr.domain.ports import MetadataProviderPort
from debridarr.infrastructure.cache.cache_factory import create_cache
from debridarr.infrastructure.config.schema import AppConfig
from debridarr.infrastructure.debrid import DebridRegistry
from debridarr.infrastructure.metadata import CinemetaClient, HttpxTmdbClient
from debridarr.infrastructure.persistence import CacheDownloadLinkRepository
from debridarr.infrastructure.proxy import MediaFlowProxy
from debridarr.infrastructure.request_lock import RequestLock
from debridarr.infrastructure.slow_indexer_tracker import SlowIndexerTracker
from debridarr.infrastructure.torrent_infos import HttpxTorrentInfoResolver
from debridarr.infrastructure.torznab import JackettGateway
from debridarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _metadata_provider(state: AppState, config: AppConfig) -> MetadataProviderPort:
    """TMDB when an access token is configured, Cinemeta otherwise."""
    if config.tmdb_access_token:
        log.info("metadata_provider_initialized", provider="tmdb")
        return HttpxTmdbClient(
            access_token=config.tmdb_access_token,
            http_client=state.http_client,
            cache=state.cache,
        )
    log.info("metadata_provider_initialized", provider="cinemeta")
    return CinemetaClient(
        http_client=state.http_client,
        cache=state.cache,
        base_url=config.cinemeta_url,
    )


def wire_services(state: AppState, config: AppConfig) -> None:
    """Build every service on top of ``state.cache`` and ``state.http_client``."""
    # 1) Process-wide ledgers
    state.tracker = SlowIndexerTracker(
        slow_duration_ms=config.slow_indexer_duration_seconds * 1000,
        window_seconds=config.slow_indexer_window_seconds,
        max_slow_requests=config.slow_indexer_max_requests,
    )
    state.request_lock = RequestLock()

    # 2) Ports
    state.indexer_gateway = JackettGateway(
        base_url=config.jackett_url,
        api_key=config.jackett_api_key,
        http_client=state.http_client,
        cache=state.cache,
    )
    metadata = _metadata_provider(state, config)
    torrent_infos = HttpxTorrentInfoResolver(
        http_client=state.http_client,
        cache=state.cache,
        ttl_seconds=config.torrent_infos_ttl_seconds,
    )
    state.debrid_registry = DebridRegistry(
        http_client=state.http_client,
        max_retries=config.debrid_max_retries,
        retry_delay=config.debrid_retry_delay_seconds,
    )
    mediaflow = MediaFlowProxy(http_client=state.http_client)

    # 3) Pipeline
    pipeline = TorrentPipeline(
        fanout=IndexerFanout(gateway=state.indexer_gateway, tracker=state.tracker),
        enricher=TorrentInfoEnricher(
            resolver=torrent_infos,
            concurrency=config.torrent_info_concurrency,
            timeout_cap=config.torrent_info_timeout_cap,
        ),
        availability=AvailabilityResolver(
            batch_size=config.hash_batch_size,
            status_ttl_seconds=config.status_cache_ttl_seconds,
            replace_passkey=config.replace_passkey,
            passkey_pattern=config.replace_passkey_pattern,
        ),
        lock=state.request_lock,
    )
    files = DebridFileFetcher(
        resolver=torrent_infos,
        replace_passkey=config.replace_passkey,
        passkey_pattern=config.replace_passkey_pattern,
    )
    state.prewarmer = NextEpisodePrewarmer(
        metadata=metadata, pipeline=pipeline, files=files
    )

    # 4) Use cases
    state.profile_factory = ProfileFactory(
        defaults=config.default_user_config,
        immutable_keys=config.immutable_user_config_keys,
    )
    state.list_streams_uc = ListStreamsUseCase(
        metadata=metadata,
        pipeline=pipeline,
        debrids=state.debrid_registry,
        client_ip=mediaflow,
        prewarmer=state.prewarmer,
        addon_name=config.addon.name,
    )
    state.resolve_download_uc = ResolveDownloadUseCase(
        resolver=torrent_infos,
        files=files,
        links=CacheDownloadLinkRepository(
            cache=state.cache, ttl_seconds=config.download_link_ttl_seconds
        ),
        lock=state.request_lock,
        debrids=state.debrid_registry,
        client_ip=mediaflow,
        prewarmer=state.prewarmer,
    )
    log.info("services_initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (torrent infos, indexer list, metadata, download links)
        2. HTTP Client (shared by Jackett, metadata, debrid, MediaFlow)
        3. Services and use cases
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache (must be first - other components depend on it)
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Services
    wire_services(state, config)

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.prewarmer.drain()
        log.info("prewarm_tasks_drained")

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
