"""Debrid backend registry and per-request instantiation."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.exceptions import UnknownDebridBackend
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.infrastructure.debrid.base import DebridHttpBackend
from debridarr.infrastructure.debrid.premiumize import PremiumizeBackend
from debridarr.infrastructure.debrid.realdebrid import RealDebridBackend
from debridarr.infrastructure.debrid.stremthru import (
    STORE_SHORT_NAMES,
    StremThruBackend,
)

log = structlog.get_logger(__name__)

DEFAULT_BACKENDS: tuple[type[DebridHttpBackend], ...] = (
    StremThruBackend,
    RealDebridBackend,
    PremiumizeBackend,
)


class DebridRegistry:
    """Builds the debrid backend matching a user profile.

    When StremThru is enabled and the user picked another provider, the
    provider is reached through StremThru (``store=<debrid_id>``).  Stores
    StremThru knows but that have no native backend here are only
    reachable that way.

    Args:
        http_client: Shared httpx client handed to every backend.
        backends: Native backend classes.
        max_retries: Retries for transient backend errors.
        retry_delay: Pause between retries, in seconds.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        backends: tuple[type[DebridHttpBackend], ...] = DEFAULT_BACKENDS,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ) -> None:
        self._http = http_client
        self._backends = {backend.id: backend for backend in backends}
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def _known(self, debrid_id: str) -> bool:
        return debrid_id in self._backends or debrid_id in STORE_SHORT_NAMES

    def create(self, profile: UserProfile) -> DebridBackendPort:
        debrid_id = profile.debrid_id
        if not self._known(debrid_id):
            raise UnknownDebridBackend(f'Debrid service "{debrid_id}" not exists')

        common: dict[str, Any] = {
            "api_key": profile.debrid_api_key,
            "http_client": self._http,
            "client_ip": profile.client_ip,
            "max_retries": self._max_retries,
            "retry_delay": self._retry_delay,
        }

        wrap = (
            profile.use_stremthru
            and bool(profile.stremthru_url)
            and debrid_id != StremThruBackend.id
        )
        if wrap or debrid_id == StremThruBackend.id:
            store = debrid_id if wrap else profile.stremthru_store
            return StremThruBackend(
                base_url=profile.stremthru_url, store=store, **common
            )

        backend_cls = self._backends.get(debrid_id)
        if backend_cls is None:
            raise UnknownDebridBackend(
                f'Debrid service "{debrid_id}" requires StremThru'
            )
        return backend_cls(**common)

    def list(self) -> list[dict[str, Any]]:
        """Describe native backends for configuration pages."""
        return [
            {
                "id": backend.id,
                "name": backend.name,
                "shortName": backend.short_name,
                "configFields": backend.config_fields,
            }
            for backend in self._backends.values()
        ]
