"""Shared plumbing for httpx-based debrid backends.

Subclasses implement ``_request_once`` and map backend errors to
``DebridError`` codes; the base class retries the transient ones with
a fixed delay.
"""

from __future__ import annotations

import asyncio
import hashlib
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any, ClassVar, TypeVar

import httpx
import structlog

from debridarr.domain.entities.torrent import TransferProgress
from debridarr.domain.exceptions import DebridError

log = structlog.get_logger(__name__)

T = TypeVar("T")


def batched(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive chunks of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def api_key_field(href: str | None = None) -> dict[str, Any]:
    field: dict[str, Any] = {
        "type": "text",
        "name": "debridApiKey",
        "label": "API Key",
        "required": True,
    }
    if href:
        field["href"] = {"value": href, "label": "Get API Key Here"}
    return field


class DebridHttpBackend(ABC):
    """Base class for the debrid backends.

    Args:
        api_key: User's API key on the backend.
        http_client: Shared httpx client.
        client_ip: End-user IP forwarded to backends that accept it.
        max_retries: Retries for transient errors (0 = single attempt).
        retry_delay: Fixed pause between attempts, in seconds.
    """

    id: ClassVar[str] = ""
    name: ClassVar[str] = ""
    config_fields: ClassVar[list[dict[str, Any]]] = []
    transient_codes: ClassVar[frozenset[str]] = frozenset()

    short_name: str = ""
    cache_check_available: bool = True
    cached_icon: str = "+"
    uncached_icon: str = ""

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        client_ip: str = "",
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._client_ip = client_ip
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def user_hash(self) -> str:
        return hashlib.md5(self._api_key.encode()).hexdigest()

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]:
        return {}

    @abstractmethod
    async def _request_once(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a single API call and map backend errors to DebridError."""

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one API call, retrying transient backend errors."""
        attempt = 0
        while True:
            try:
                return await self._request_once(method, path, **kwargs)
            except DebridError as e:
                if e.code not in self.transient_codes or attempt >= self._max_retries:
                    raise
                attempt += 1
                log.info(
                    "debrid_retry",
                    backend=self.id,
                    path=path,
                    code=e.code,
                    attempt=attempt,
                )
                await asyncio.sleep(self._retry_delay)
