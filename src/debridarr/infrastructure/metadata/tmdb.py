"""TMDB metadata client (async httpx, cached)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from debridarr.domain.entities.media import EpisodeRef, MediaInfo, MediaQuery
from debridarr.domain.exceptions import MediaNotFound
from debridarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"

# Cache TTLs (seconds)
_TTL_FIND = 86_400  # 24 hours
_TTL_DETAILS = 21_600  # 6 hours


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``MetadataProviderPort``. Authenticates with a v4 read
    access token. Without a language the original title is used for
    searching; with one, the localized title.
    """

    def __init__(
        self,
        *,
        access_token: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
    ) -> None:
        self._access_token = access_token
        self._http = http_client
        self._cache = cache

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, **params: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{_BASE_URL}{path}"
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            resp = await self._http.get(
                url,
                params={k: v for k, v in params.items() if v},
                headers=headers,
            )
            if resp.status_code == 401:
                log.error("tmdb_access_token_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError:
            log.warning("tmdb_request_failed", path=path, exc_info=True)
            return None

    async def _cached_get(
        self, cache_key: str, ttl: int, path: str, **params: Any
    ) -> dict[str, Any] | None:
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached
        data = await self._get(path, **params)
        if data is not None:
            await self._cache.set(cache_key, data, ttl=ttl)
        return data

    async def _find(self, external_id: str, result_key: str) -> dict[str, Any]:
        data = await self._cached_get(
            f"tmdb:find:{external_id}",
            _TTL_FIND,
            f"/find/{external_id}",
            external_source="imdb_id",
        )
        results = (data or {}).get(result_key) or []
        if not results:
            raise MediaNotFound(f"TMDB has no entry for {external_id}")
        return results[0]

    # ------------------------------------------------------------------
    # Public API (MetadataProviderPort)
    # ------------------------------------------------------------------

    async def get_movie(self, query: MediaQuery, language: str = "") -> MediaInfo:
        found = await self._find(query.external_id, "movie_results")
        details = await self._cached_get(
            f"tmdb:movie:{found['id']}:{language}",
            _TTL_DETAILS,
            f"/movie/{found['id']}",
            language=language,
        ) or found

        name = details.get("title") if language else details.get("original_title")
        release_date = details.get("release_date") or ""
        return MediaInfo(
            query=query,
            name=name or details.get("title", ""),
            year=int(release_date[:4]) if release_date[:4].isdigit() else None,
        )

    async def get_episode(self, query: MediaQuery, language: str = "") -> MediaInfo:
        found = await self._find(query.external_id, "tv_results")
        details = await self._cached_get(
            f"tmdb:tv:{found['id']}:{language}",
            _TTL_DETAILS,
            f"/tv/{found['id']}",
            language=language,
        ) or found

        episodes = tuple(
            EpisodeRef(season["season_number"], number)
            for season in details.get("seasons") or []
            if season.get("season_number")
            for number in range(1, (season.get("episode_count") or 0) + 1)
        )
        name = details.get("name") if language else details.get("original_name")
        first_air = details.get("first_air_date") or ""
        return MediaInfo(
            query=query,
            name=name or details.get("name", ""),
            year=int(first_air[:4]) if first_air[:4].isdigit() else None,
            episodes=episodes,
        )
