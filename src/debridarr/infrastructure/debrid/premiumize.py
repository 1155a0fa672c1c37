"""Premiumize.me backend.

Cached torrents are served through ``/transfer/directdl`` which returns
the file list with direct links in one call; anything else is queued
with ``/transfer/create`` and reported as not ready.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from debridarr.domain.entities.torrent import DebridFile, HashStatus, TransferProgress
from debridarr.domain.exceptions import DebridError, ExpiredCredential, NotReady
from debridarr.infrastructure.debrid.base import DebridHttpBackend, api_key_field
from debridarr.infrastructure.torrent_infos.bencode_utils import (
    InvalidTorrent,
    magnet_from_hash,
    magnet_info_hash,
)

log = structlog.get_logger(__name__)

_API_BASE = "https://www.premiumize.me/api"


class PremiumizeBackend(DebridHttpBackend):
    id = "premiumize"
    name = "Premiumize"
    config_fields = [api_key_field("https://www.premiumize.me/account")]
    transient_codes = frozenset({"SERVICE_UNAVAILABLE"})

    short_name = "PM"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _request_once(self, method: str, path: str, **kwargs: Any) -> Any:
        params = {"apikey": self._api_key, **kwargs.pop("params", {})}
        try:
            resp = await self._http.request(
                method, f"{_API_BASE}{path}", params=params, **kwargs
            )
        except httpx.HTTPError as e:
            raise DebridError(f"Premiumize request error: {e}") from e

        if resp.status_code >= 500:
            raise DebridError(
                f"Premiumize HTTP {resp.status_code}", code="SERVICE_UNAVAILABLE"
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise DebridError(f"Premiumize invalid response: {e}") from e

        if payload.get("status") != "success":
            message = str(payload.get("message", ""))
            if resp.status_code == 401 or "not logged in" in message.lower():
                raise ExpiredCredential()
            raise DebridError(f"Premiumize API error: {message}", code="API_ERROR")
        return payload

    async def _directdl(self, magnet_url: str) -> list[dict[str, Any]]:
        data = await self._request(
            "POST", "/transfer/directdl", data={"src": magnet_url}
        )
        return data.get("content") or []

    # ------------------------------------------------------------------
    # DebridBackendPort
    # ------------------------------------------------------------------

    async def check_cache(self, hashes: list[str]) -> dict[str, HashStatus]:
        if not hashes:
            return {}
        data = await self._request(
            "GET", "/cache/check", params={"items[]": list(hashes)}
        )
        flags = data.get("response") or []
        return {
            h.lower(): HashStatus(
                info_hash=h.lower(), status="cached" if cached else "unknown"
            )
            for h, cached in zip(hashes, flags)
        }

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]:
        wanted = {h.lower() for h in hashes}
        data = await self._request("GET", "/transfer/list")
        progress: dict[str, TransferProgress] = {}
        for transfer in data.get("transfers") or []:
            try:
                info_hash = magnet_info_hash(str(transfer.get("src", "")))
            except InvalidTorrent:
                continue
            if info_hash in wanted:
                progress[info_hash] = TransferProgress(
                    percent=round(float(transfer.get("progress") or 0) * 100)
                )
        return progress

    async def add_magnet(self, magnet_url: str) -> str:
        # Premiumize works on the magnet itself; it is the handle.
        return magnet_url

    async def add_torrent_file(self, buffer: bytes, info_hash: str) -> str:
        magnet_url = magnet_from_hash(info_hash)
        if not await self._directdl(magnet_url):
            await self._request(
                "POST",
                "/transfer/create",
                files={"file": ("file.torrent", buffer, "application/x-bittorrent")},
            )
            log.info("premiumize_transfer_created", info_hash=info_hash)
            raise NotReady()
        return magnet_url

    async def list_files(self, handle: str) -> list[DebridFile]:
        content = await self._directdl(handle)
        if not content:
            await self._request("POST", "/transfer/create", data={"src": handle})
            log.info("premiumize_transfer_created", src=handle[:60])
            raise NotReady()
        return [
            DebridFile(
                id=item.get("link", ""),
                name=str(item.get("path", "")).split("/")[-1],
                size=int(item.get("size") or 0),
                url=item.get("link", ""),
                ready=True,
                status="cached",
            )
            for item in content
        ]

    async def resolve_download(self, file: DebridFile) -> str | None:
        if not file.url:
            raise NotReady()
        return file.url
