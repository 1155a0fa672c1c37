"""Bounded-concurrency torrent info resolution with hash dedup."""

from __future__ import annotations

import asyncio
import re

import structlog

from debridarr.application.pipeline.deadline import run_with_deadline
from debridarr.domain.entities.torrent import Candidate
from debridarr.domain.exceptions import NoTorrentInfos
from debridarr.domain.ports.torrent_infos import TorrentInfoResolverPort

log = structlog.get_logger(__name__)

_APIKEY_RE = re.compile(r"apikey=[a-zA-Z0-9\-]+")


def mask_apikey(url: str) -> str:
    return _APIKEY_RE.sub("apikey=****", url)


def dedup_by_hash(candidates: list[Candidate]) -> list[Candidate]:
    """Keep the first candidate of every info hash, in order."""
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        info_hash = candidate.info_hash
        if info_hash is None or info_hash in seen:
            continue
        seen.add(info_hash)
        unique.append(candidate)
    return unique


class TorrentInfoEnricher:
    """Attaches ``TorrentInfos`` to candidates.

    The semaphore is shared by every request using this instance, so
    the composition root builds exactly one.

    Args:
        resolver: Fetches and parses the torrent behind a candidate.
        concurrency: Resolutions in flight across all requests.
        timeout_cap: Upper bound of the per-candidate timeout, in seconds.
    """

    def __init__(
        self,
        *,
        resolver: TorrentInfoResolverPort,
        concurrency: int = 5,
        timeout_cap: float = 30.0,
    ) -> None:
        self._resolver = resolver
        self._semaphore = asyncio.Semaphore(concurrency)
        self._timeout_cap = timeout_cap

    async def _enrich_one(
        self, candidate: Candidate, timeout: float, media_id: str
    ) -> Candidate | None:
        async with self._semaphore:
            try:
                infos = await run_with_deadline(
                    self._resolver.resolve(candidate), timeout
                )
            except Exception:
                log.info(
                    "torrent_infos_failed",
                    media_id=media_id,
                    indexer=candidate.indexer_id,
                    link=mask_apikey(candidate.link),
                    exc_info=True,
                )
                return None
        candidate.infos = infos
        return candidate

    async def enrich(
        self,
        candidates: list[Candidate],
        *,
        max_torrents: int,
        timeout_sec: float,
        media_id: str = "",
    ) -> list[Candidate]:
        """Resolve infos, drop failures, dedup by hash, truncate.

        Raises:
            NoTorrentInfos: no candidate could be resolved.
        """
        timeout = min(self._timeout_cap, timeout_sec)
        resolved = await asyncio.gather(
            *(self._enrich_one(c, timeout, media_id) for c in candidates)
        )
        enriched = dedup_by_hash([c for c in resolved if c is not None])
        enriched = enriched[:max_torrents]

        log.info(
            "torrent_infos_resolved",
            media_id=media_id,
            requested=len(candidates),
            resolved=len(enriched),
        )
        if not enriched:
            raise NoTorrentInfos(f"No torrent infos for {media_id}")
        return enriched
