"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from debridarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from debridarr.application.factories.profile_factory import ProfileFactory
    from debridarr.application.pipeline.prewarm import NextEpisodePrewarmer
    from debridarr.application.use_cases import (
        ListStreamsUseCase,
        ResolveDownloadUseCase,
    )
    from debridarr.domain.ports import CachePort, IndexerGatewayPort
    from debridarr.infrastructure.debrid import DebridRegistry
    from debridarr.infrastructure.request_lock import RequestLock
    from debridarr.infrastructure.slow_indexer_tracker import SlowIndexerTracker


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    tracker: SlowIndexerTracker
    request_lock: RequestLock

    # Domain Ports
    indexer_gateway: IndexerGatewayPort
    debrid_registry: DebridRegistry

    # Application Services
    profile_factory: ProfileFactory
    prewarmer: NextEpisodePrewarmer
    list_streams_uc: ListStreamsUseCase
    resolve_download_uc: ResolveDownloadUseCase
