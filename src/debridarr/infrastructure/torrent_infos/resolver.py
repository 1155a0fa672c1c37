"""Torrent info resolver: httpx fetch + bencodepy parse + CachePort storage.

A candidate is either a magnet (hash comes from the ``xt`` parameter) or
a download link.  Links are fetched without following redirects because
many indexers redirect to a magnet URI; an HTTP redirect is followed
once.  The resolved infos and the raw ``.torrent`` bytes are stored
under an opaque id so the download route can find them again.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict
from typing import Any

import httpx
import structlog

from debridarr.domain.entities.torrent import Candidate, TorrentFile, TorrentInfos
from debridarr.domain.exceptions import TorrentInfosNotFound
from debridarr.domain.ports.cache import CachePort
from debridarr.infrastructure.torrent_infos.bencode_utils import (
    InvalidTorrent,
    decode_torrent,
    info_hash,
    is_private,
    magnet_info_hash,
    torrent_files,
)

log = structlog.get_logger(__name__)

_INFOS_KEY = "torrent:infos:{id}"
_FILE_KEY = "torrent:file:{id}"


def torrent_id_for(candidate: Candidate) -> str:
    """Stable id of a candidate, derived from its link (or magnet)."""
    source = candidate.link or candidate.magnet_url or candidate.name
    return hashlib.sha256(source.encode()).hexdigest()[:32]


def _infos_to_dict(infos: TorrentInfos) -> dict[str, Any]:
    data = asdict(infos)
    data["files"] = [asdict(f) for f in infos.files]
    return data


def _infos_from_dict(data: dict[str, Any]) -> TorrentInfos:
    return TorrentInfos(
        id=data["id"],
        info_hash=data["info_hash"],
        files=tuple(TorrentFile(**f) for f in data.get("files", [])),
        private=bool(data.get("private", False)),
        magnet_url=data.get("magnet_url"),
        size=int(data.get("size", 0)),
    )


class HttpxTorrentInfoResolver:
    """Implements ``TorrentInfoResolverPort``.

    Args:
        http_client: Shared httpx client (timeouts are applied by the caller).
        cache: Storage for infos and raw torrent files.
        ttl_seconds: Lifetime of stored infos; a download requested after
            expiry fails with ``TorrentInfosNotFound``.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        ttl_seconds: int = 7 * 86400,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._ttl = ttl_seconds

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _from_magnet(self, torrent_id: str, magnet_url: str) -> TorrentInfos:
        return TorrentInfos(
            id=torrent_id,
            info_hash=magnet_info_hash(magnet_url),
            magnet_url=magnet_url,
        )

    def _from_buffer(self, torrent_id: str, buffer: bytes) -> TorrentInfos:
        torrent = decode_torrent(buffer)
        files = torrent_files(torrent)
        return TorrentInfos(
            id=torrent_id,
            info_hash=info_hash(torrent),
            files=files,
            private=is_private(torrent),
            size=sum(f.size for f in files),
        )

    async def _fetch(self, url: str) -> httpx.Response:
        resp = await self._http.get(url, follow_redirects=False)
        if resp.is_redirect:
            location = resp.headers.get("location", "")
            if location.startswith("magnet:"):
                return resp
            resp = await self._http.get(location, follow_redirects=True)
        resp.raise_for_status()
        return resp

    async def _store(self, infos: TorrentInfos, buffer: bytes | None) -> None:
        await self._cache.set(
            _INFOS_KEY.format(id=infos.id), _infos_to_dict(infos), ttl=self._ttl
        )
        if buffer is not None:
            await self._cache.set(
                _FILE_KEY.format(id=infos.id), buffer, ttl=self._ttl
            )

    # ------------------------------------------------------------------
    # Public API (TorrentInfoResolverPort)
    # ------------------------------------------------------------------

    async def resolve(self, candidate: Candidate) -> TorrentInfos:
        torrent_id = torrent_id_for(candidate)

        if candidate.magnet_url and not candidate.link.startswith("http"):
            infos = self._from_magnet(torrent_id, candidate.magnet_url)
            await self._store(infos, None)
            return infos

        resp = await self._fetch(candidate.link)
        location = resp.headers.get("location", "")
        if resp.is_redirect and location.startswith("magnet:"):
            infos = self._from_magnet(torrent_id, location)
            await self._store(infos, None)
            return infos

        try:
            infos = self._from_buffer(torrent_id, resp.content)
        except InvalidTorrent:
            # Some indexers publish both; the magnet is still usable.
            if not candidate.magnet_url:
                raise
            infos = self._from_magnet(torrent_id, candidate.magnet_url)
            await self._store(infos, None)
            return infos

        await self._store(infos, resp.content)
        return infos

    async def get_by_id(self, torrent_id: str) -> TorrentInfos:
        data = await self._cache.get(_INFOS_KEY.format(id=torrent_id))
        if not isinstance(data, dict):
            raise TorrentInfosNotFound(f"Torrent infos not found: {torrent_id}")
        return _infos_from_dict(data)

    async def get_torrent_file(self, infos: TorrentInfos) -> bytes:
        buffer = await self._cache.get(_FILE_KEY.format(id=infos.id))
        if not isinstance(buffer, bytes):
            raise TorrentInfosNotFound(f"Torrent file not found: {infos.id}")
        return buffer
