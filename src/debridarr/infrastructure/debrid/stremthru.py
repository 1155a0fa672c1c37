"""StremThru proxy backend.

StremThru fronts many debrid stores behind one API; the store is chosen
per request with the ``X-StremThru-Store-Name`` header.  Used directly
or as a wrapper around the user's chosen provider.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from debridarr.domain.entities.torrent import (
    DebridFile,
    HashStatus,
    TorrentFile,
    TransferProgress,
)
from debridarr.domain.exceptions import DebridError, ExpiredCredential, NotReady
from debridarr.infrastructure.debrid.base import DebridHttpBackend, api_key_field
from debridarr.infrastructure.torrent_infos.bencode_utils import magnet_from_hash

log = structlog.get_logger(__name__)

DEFAULT_STREMTHRU_URL = "https://stremthru.13377001.xyz"

STORE_SHORT_NAMES: dict[str, str] = {
    "realdebrid": "RD",
    "alldebrid": "AD",
    "debridlink": "DL",
    "premiumize": "PM",
    "pikpak": "PP",
    "easydebrid": "ED",
    "offcloud": "OC",
    "torbox": "TB",
}

_READY = frozenset({"downloaded", "cached"})


class StremThruBackend(DebridHttpBackend):
    """Debrid backend talking to a StremThru instance.

    Args:
        base_url: StremThru root URL.
        store: Store name forwarded to StremThru (``realdebrid``, ...).
        poll_attempts: Status polls after adding a magnet.
        poll_interval: Pause between polls, in seconds.
    """

    id = "stremthru"
    name = "StremThru"
    config_fields = [
        {
            "type": "text",
            "name": "stremthruUrl",
            "label": "StremThru URL",
            "required": True,
            "value": DEFAULT_STREMTHRU_URL,
        },
        {
            "type": "text",
            "name": "stremthruStore",
            "label": "StremThru Store",
            "required": True,
            "value": "realdebrid",
        },
        api_key_field(),
    ]
    transient_codes = frozenset({"FORBIDDEN", "INTERNAL_SERVER_ERROR"})

    short_name = "ST"
    cached_icon = "⚡"
    uncached_icon = "⬇️"

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_STREMTHRU_URL,
        store: str = "realdebrid",
        client_ip: str = "",
        poll_attempts: int = 10,
        poll_interval: float = 2.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ) -> None:
        super().__init__(
            api_key=api_key,
            http_client=http_client,
            client_ip=client_ip,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )
        self._base_url = f"{(base_url or DEFAULT_STREMTHRU_URL).rstrip('/')}/v0/store"
        self.store = store or "realdebrid"
        self.short_name = STORE_SHORT_NAMES.get(self.store, "ST")
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "X-StremThru-Store-Name": self.store,
            "X-StremThru-Store-Authorization": f"Bearer {self._api_key}",
        }

    async def _request_once(self, method: str, path: str, **kwargs: Any) -> Any:
        log.debug("stremthru_request", method=method, path=path, store=self.store)
        try:
            resp = await self._http.request(
                method, f"{self._base_url}{path}", headers=self._headers(), **kwargs
            )
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DebridError(f"StremThru request error: {e}") from e

        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            code = error.get("code") if isinstance(error, dict) else str(error)
            if code == "UNAUTHORIZED":
                raise ExpiredCredential()
            raise DebridError(f"StremThru API error: {error}", code=code)
        return payload.get("data") or {}

    async def _magnet(self, magnet_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/magnets/{magnet_id}")

    # ------------------------------------------------------------------
    # DebridBackendPort
    # ------------------------------------------------------------------

    async def check_cache(self, hashes: list[str]) -> dict[str, HashStatus]:
        if not hashes:
            return {}
        data = await self._request(
            "GET",
            "/magnets/check",
            params={
                "magnet": ",".join(magnet_from_hash(h) for h in hashes),
                "client_ip": self._client_ip,
            },
        )
        statuses: dict[str, HashStatus] = {}
        for item in data.get("items") or []:
            info_hash = str(item.get("hash", "")).lower()
            if not info_hash:
                continue
            statuses[info_hash] = HashStatus(
                info_hash=info_hash,
                status=item.get("status", "unknown"),
                files=tuple(
                    TorrentFile(name=f.get("name", ""), size=int(f.get("size") or 0))
                    for f in item.get("files") or []
                ),
            )
        return statuses

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]:
        # StremThru does not report transfer progress.
        return {h: TransferProgress() for h in hashes}

    async def add_magnet(self, magnet_url: str) -> str:
        data = await self._request("POST", "/magnets", json={"magnet": magnet_url})
        magnet_id = data.get("id")
        if not magnet_id:
            raise DebridError("Failed to add magnet")
        return str(magnet_id)

    async def add_torrent_file(self, buffer: bytes, info_hash: str) -> str:
        # No torrent upload through StremThru; the hash is enough.
        return await self.add_magnet(magnet_from_hash(info_hash))

    async def list_files(self, handle: str) -> list[DebridFile]:
        magnet: dict[str, Any] = {}
        for attempt in range(self._poll_attempts):
            magnet = await self._magnet(handle)
            if magnet.get("status") in _READY:
                break
            if attempt + 1 < self._poll_attempts:
                await asyncio.sleep(self._poll_interval)

        files = magnet.get("files") or []
        if not files:
            raise DebridError("No files found or magnet processing timeout")

        status = magnet.get("status", "")
        return [
            DebridFile(
                id=f"{handle}:{f.get('index')}",
                name=str(f.get("name", "")).split("/")[-1],
                size=int(f.get("size") or 0),
                ready=status in _READY,
                status=status,
            )
            for f in files
        ]

    async def resolve_download(self, file: DebridFile) -> str | None:
        magnet_id, _, index = file.id.rpartition(":")
        magnet = await self._magnet(magnet_id)
        if magnet.get("status") not in _READY:
            raise NotReady()

        target = next(
            (f for f in magnet.get("files") or [] if str(f.get("index")) == index),
            None,
        )
        if target is None or not target.get("link"):
            raise DebridError("File not found or link not available")

        data = await self._request(
            "POST", "/link/generate", json={"link": target["link"]}
        )
        link = data.get("link")
        if not link:
            raise DebridError("Failed to generate download link")
        return link
