"""Jackett Torznab client over async httpx.

Implements ``IndexerGatewayPort``: lists configured indexers with their
search capabilities and runs one search against one indexer.
"""

from __future__ import annotations

from typing import Any
from xml.etree import ElementTree as ET

import httpx
import structlog

from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.torrent import Candidate, IndexerInfo
from debridarr.domain.ports.cache import CachePort
from debridarr.infrastructure.release.release_parser import parse_release

log = structlog.get_logger(__name__)

_TORZNAB_NS = "{http://torznab.com/schemas/2015/feed}"
_API_PATH = "/api/v2.0/indexers/{indexer}/results/torznab/api"

_CAT_MOVIES = "2000"
_CAT_TV = "5000"

# Indexer list changes rarely; avoid one round-trip per stream request.
_TTL_INDEXERS = 300


def _to_int(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def _available(searching: ET.Element | None, tag: str) -> bool:
    if searching is None:
        return False
    node = searching.find(tag)
    return node is not None and node.get("available") == "yes"


def parse_indexers(xml_text: str) -> list[IndexerInfo]:
    """Parse a ``t=indexers`` response."""
    root = ET.fromstring(xml_text)
    indexers: list[IndexerInfo] = []
    for node in root.iter("indexer"):
        if node.get("configured", "true") != "true":
            continue
        searching = node.find("caps/searching")
        indexers.append(
            IndexerInfo(
                id=node.get("id", ""),
                title=node.findtext("title", default=node.get("id", "")),
                movie_available=_available(searching, "movie-search"),
                series_available=_available(searching, "tv-search"),
            )
        )
    return indexers


def _torznab_attrs(item: ET.Element) -> dict[str, str]:
    return {
        attr.get("name", ""): attr.get("value", "")
        for attr in item.iter(f"{_TORZNAB_NS}attr")
    }


def parse_results(xml_text: str, indexer_id: str) -> list[Candidate]:
    """Parse a Torznab RSS search response into candidates."""
    root = ET.fromstring(xml_text)
    candidates: list[Candidate] = []
    for item in root.iter("item"):
        name = (item.findtext("title") or "").strip()
        if not name:
            continue
        attrs = _torznab_attrs(item)
        link = (item.findtext("link") or "").strip()
        enclosure = item.find("enclosure")
        if not link and enclosure is not None:
            link = enclosure.get("url", "")

        magnet_url = attrs.get("magneturl") or None
        if link.startswith("magnet:"):
            magnet_url = magnet_url or link

        size = _to_int(item.findtext("size")) or _to_int(attrs.get("size"))
        release = parse_release(name)
        candidates.append(
            Candidate(
                name=name,
                indexer_id=indexer_id,
                link=link,
                magnet_url=magnet_url,
                size=size,
                seeders=_to_int(attrs.get("seeders")),
                quality=release.quality,
                languages=release.languages,
                year=release.year,
            )
        )
    return candidates


class JackettGateway:
    """Async Jackett client using httpx + CachePort.

    Args:
        base_url: Jackett root URL (e.g. ``http://localhost:9117``).
        api_key: Jackett API key.
        http_client: Shared httpx client.
        cache: Cache for the indexer list.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._http = http_client
        self._cache = cache

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, indexer: str, **params: Any) -> str:
        url = f"{self._base_url}{_API_PATH.format(indexer=indexer)}"
        query = {"apikey": self._api_key, **{k: v for k, v in params.items() if v}}
        resp = await self._http.get(url, params=query)
        resp.raise_for_status()
        return resp.text

    async def _search(
        self, indexer_id: str, **params: Any
    ) -> list[Candidate]:
        xml_text = await self._get(indexer_id, **params)
        try:
            results = parse_results(xml_text, indexer_id)
        except ET.ParseError:
            log.warning("jackett_invalid_xml", indexer=indexer_id, exc_info=True)
            return []
        log.debug("jackett_search_done", indexer=indexer_id, results=len(results))
        return results

    # ------------------------------------------------------------------
    # Public API (IndexerGatewayPort)
    # ------------------------------------------------------------------

    async def list_indexers(self) -> list[IndexerInfo]:
        cache_key = "jackett:indexers"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return [IndexerInfo(**data) for data in cached]

        xml_text = await self._get("all", t="indexers", configured="true")
        indexers = parse_indexers(xml_text)
        await self._cache.set(
            cache_key,
            [
                {
                    "id": i.id,
                    "title": i.title,
                    "movie_available": i.movie_available,
                    "series_available": i.series_available,
                }
                for i in indexers
            ],
            ttl=_TTL_INDEXERS,
        )
        log.info("jackett_indexers_loaded", count=len(indexers))
        return indexers

    async def search_movies(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        return await self._search(indexer_id, t="movie", cat=_CAT_MOVIES, q=media.name)

    async def search_episodes(
        self, media: MediaInfo, indexer_id: str
    ) -> list[Candidate]:
        return await self._search(
            indexer_id,
            t="tvsearch",
            cat=_CAT_TV,
            q=media.name,
            season=str(media.season),
            ep=str(media.episode),
        )

    async def search_seasons(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        return await self._search(indexer_id, t="tvsearch", cat=_CAT_TV, q=media.name)
