"""Real-Debrid backend (REST API v1.0).

Real-Debrid no longer exposes instant availability, so cache status is
derived from the torrents already present in the user's account.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from debridarr.domain.entities.torrent import DebridFile, HashStatus, TransferProgress
from debridarr.domain.exceptions import DebridError, ExpiredCredential, NotReady
from debridarr.infrastructure.debrid.base import DebridHttpBackend, api_key_field

log = structlog.get_logger(__name__)

_API_BASE = "https://api.real-debrid.com/rest/1.0"

# Statuses reported while RD converts a magnet to a file list.
_CONVERTING = frozenset({"magnet_conversion", "queued"})
_FAILED = frozenset({"magnet_error", "error", "virus", "dead"})


class RealDebridBackend(DebridHttpBackend):
    id = "realdebrid"
    name = "Real-Debrid"
    config_fields = [api_key_field("https://real-debrid.com/apitoken")]
    transient_codes = frozenset({"SERVICE_UNAVAILABLE"})

    short_name = "RD"
    cache_check_available = False

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        client_ip: str = "",
        poll_attempts: int = 10,
        poll_interval: float = 1.0,
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
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _request_once(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._http.request(
                method,
                f"{_API_BASE}{path}",
                headers={"Authorization": f"Bearer {self._api_key}"},
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise DebridError(f"Real-Debrid request error: {e}") from e

        if resp.status_code == 401:
            raise ExpiredCredential()
        if resp.status_code >= 500:
            raise DebridError(
                f"Real-Debrid HTTP {resp.status_code}", code="SERVICE_UNAVAILABLE"
            )
        if resp.status_code == 204 or not resp.content:
            return {}

        try:
            payload = resp.json()
        except ValueError as e:
            raise DebridError(f"Real-Debrid invalid response: {e}") from e
        if resp.status_code >= 400:
            code = payload.get("error") if isinstance(payload, dict) else None
            raise DebridError(f"Real-Debrid API error: {code}", code=code)
        return payload

    async def _user_torrents(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/torrents", params={"limit": 100})
        return data if isinstance(data, list) else []

    async def _info(self, torrent_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/torrents/info/{torrent_id}")

    # ------------------------------------------------------------------
    # DebridBackendPort
    # ------------------------------------------------------------------

    async def check_cache(self, hashes: list[str]) -> dict[str, HashStatus]:
        wanted = {h.lower() for h in hashes}
        statuses: dict[str, HashStatus] = {}
        for torrent in await self._user_torrents():
            info_hash = str(torrent.get("hash", "")).lower()
            if info_hash in wanted:
                statuses[info_hash] = HashStatus(
                    info_hash=info_hash, status=torrent.get("status", "unknown")
                )
        return statuses

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]:
        wanted = {h.lower() for h in hashes}
        progress: dict[str, TransferProgress] = {}
        for torrent in await self._user_torrents():
            info_hash = str(torrent.get("hash", "")).lower()
            if info_hash in wanted and torrent.get("status") != "downloaded":
                progress[info_hash] = TransferProgress(
                    percent=int(torrent.get("progress") or 0),
                    speed=int(torrent.get("speed") or 0),
                )
        return progress

    async def add_magnet(self, magnet_url: str) -> str:
        data = await self._request(
            "POST", "/torrents/addMagnet", data={"magnet": magnet_url}
        )
        if not data.get("id"):
            raise DebridError("Real-Debrid did not return a torrent id")
        return str(data["id"])

    async def add_torrent_file(self, buffer: bytes, info_hash: str) -> str:
        data = await self._request("PUT", "/torrents/addTorrent", content=buffer)
        if not data.get("id"):
            raise DebridError("Real-Debrid did not return a torrent id")
        return str(data["id"])

    async def list_files(self, handle: str) -> list[DebridFile]:
        info: dict[str, Any] = {}
        for attempt in range(self._poll_attempts):
            info = await self._info(handle)
            if info.get("status") not in _CONVERTING:
                break
            if attempt + 1 < self._poll_attempts:
                await asyncio.sleep(self._poll_interval)

        status = info.get("status", "")
        if status in _FAILED:
            raise DebridError(f"Real-Debrid torrent failed: {status}", code=status)
        if status == "waiting_files_selection":
            await self._request(
                "POST", f"/torrents/selectFiles/{handle}", data={"files": "all"}
            )
            info = await self._info(handle)
            status = info.get("status", "")

        # RD returns one link per selected file, in file order.
        selected = [f for f in info.get("files") or [] if f.get("selected")]
        links = info.get("links") or []
        ready = status == "downloaded"
        files: list[DebridFile] = []
        for index, f in enumerate(selected):
            files.append(
                DebridFile(
                    id=f"{handle}:{f.get('id')}",
                    name=str(f.get("path", "")).split("/")[-1],
                    size=int(f.get("bytes") or 0),
                    url=links[index] if ready and index < len(links) else "",
                    ready=ready,
                    status=status,
                )
            )
        if not files:
            raise DebridError("No files found on Real-Debrid")
        return files

    async def resolve_download(self, file: DebridFile) -> str | None:
        if not file.ready or not file.url:
            raise NotReady()
        data = await self._request("POST", "/unrestrict/link", data={"link": file.url})
        return data.get("download")
