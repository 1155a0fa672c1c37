"""Cinemeta metadata client (Stremio's public catalog, no API key)."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from debridarr.domain.entities.media import EpisodeRef, MediaInfo, MediaQuery
from debridarr.domain.exceptions import MediaNotFound
from debridarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_DEFAULT_BASE_URL = "https://v3-cinemeta.strem.io"
_TTL_META = 86_400  # 24 hours
_YEAR = re.compile(r"\d{4}")


def _parse_year(meta: dict[str, Any]) -> int | None:
    for key in ("year", "releaseInfo"):
        match = _YEAR.search(str(meta.get(key) or ""))
        if match:
            return int(match.group(0))
    return None


def _parse_episodes(meta: dict[str, Any]) -> tuple[EpisodeRef, ...]:
    refs = {
        EpisodeRef(int(v["season"]), int(v["episode"]))
        for v in meta.get("videos") or []
        if v.get("season") and v.get("episode")
    }
    return tuple(sorted(refs, key=lambda r: (r.season, r.episode)))


class CinemetaClient:
    """Async Cinemeta client using httpx + CachePort.

    Implements ``MetadataProviderPort``. Cinemeta only serves English
    titles, so the requested language is ignored.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = _DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    async def _meta(self, kind: str, external_id: str) -> dict[str, Any]:
        cache_key = f"cinemeta:{kind}:{external_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{self._base_url}/meta/{kind}/{external_id}.json"
        try:
            resp = await self._http.get(url)
            resp.raise_for_status()
            meta = (resp.json() or {}).get("meta")
        except httpx.HTTPError as e:
            log.warning("cinemeta_request_failed", url=url, exc_info=True)
            raise MediaNotFound(f"Cinemeta lookup failed for {external_id}") from e

        if not meta or not meta.get("name"):
            raise MediaNotFound(f"Unknown {kind} id {external_id}")

        await self._cache.set(cache_key, meta, ttl=_TTL_META)
        return meta

    async def get_movie(self, query: MediaQuery, language: str = "") -> MediaInfo:
        meta = await self._meta("movie", query.external_id)
        return MediaInfo(query=query, name=meta["name"], year=_parse_year(meta))

    async def get_episode(self, query: MediaQuery, language: str = "") -> MediaInfo:
        meta = await self._meta("series", query.external_id)
        return MediaInfo(
            query=query,
            name=meta["name"],
            year=_parse_year(meta),
            episodes=_parse_episodes(meta),
        )
