"""Parallel, individually time-boxed search across Jackett indexers."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import structlog

from debridarr.application.pipeline.deadline import run_with_deadline
from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.torrent import Candidate, IndexerInfo
from debridarr.domain.exceptions import NoBackendConfigured
from debridarr.domain.ports.indexer_gateway import IndexerGatewayPort
from debridarr.infrastructure.ranking.pack_matcher import is_season_pack
from debridarr.infrastructure.ranking.ranker import search_predicate
from debridarr.infrastructure.slow_indexer_tracker import SlowIndexerTracker

log = structlog.get_logger(__name__)

_SearchFn = Callable[[MediaInfo, str], Awaitable[list[Candidate]]]


@dataclass
class FanoutResult:
    """Merged search hits; ``packs`` is the season-pack subset (series only)."""

    candidates: list[Candidate] = field(default_factory=list)
    packs: list[Candidate] = field(default_factory=list)


def select_indexers(
    indexers: Sequence[IndexerInfo], kind: str, allow_list: Sequence[str]
) -> list[IndexerInfo]:
    """Pick the indexers to query for ``kind``.

    Allow-list intersected with the indexers able to search ``kind``;
    falls back to every ``kind``-capable indexer, then to every indexer.

    Raises:
        NoBackendConfigured: Jackett exposes no indexer at all.
    """
    available = [i for i in indexers if i.available_for(kind)]
    wanted = set(allow_list)
    chosen = [i for i in available if "all" in wanted or i.id in wanted]
    if chosen:
        return chosen
    if available:
        log.info(
            "indexer_allow_list_unavailable",
            allow_list=list(allow_list),
            kind=kind,
            fallback="kind",
        )
        return available
    if indexers:
        log.info(
            "indexer_allow_list_unavailable",
            allow_list=list(allow_list),
            kind=kind,
            fallback="all",
        )
        return list(indexers)
    raise NoBackendConfigured("No indexer configured in jackett")


class IndexerFanout:
    """Runs one search per indexer in parallel and feeds the slow tracker.

    Timed-out or failing searches contribute an empty result; their
    duration is still recorded.  Late answers are abandoned, never
    awaited.
    """

    def __init__(
        self, *, gateway: IndexerGatewayPort, tracker: SlowIndexerTracker
    ) -> None:
        self._gateway = gateway
        self._tracker = tracker

    async def _timed_search(
        self,
        search_fn: _SearchFn,
        media: MediaInfo,
        indexer_id: str,
        timeout_sec: float,
    ) -> list[Candidate]:
        t0 = time.perf_counter()
        try:
            return await run_with_deadline(search_fn(media, indexer_id), timeout_sec)
        except TimeoutError:
            log.info(
                "indexer_search_timeout",
                media_id=media.media_id,
                indexer=indexer_id,
                timeout_sec=timeout_sec,
            )
            return []
        except Exception:
            log.warning(
                "indexer_search_error",
                media_id=media.media_id,
                indexer=indexer_id,
                exc_info=True,
            )
            return []
        finally:
            duration_ms = round((time.perf_counter() - t0) * 1000)
            self._tracker.record(indexer_id, duration_ms, round(timeout_sec * 1000))

    async def _search_all(
        self,
        search_fn: _SearchFn,
        media: MediaInfo,
        indexers: Sequence[IndexerInfo],
        timeout_sec: float,
    ) -> list[Candidate]:
        results = await asyncio.gather(
            *(
                self._timed_search(search_fn, media, indexer.id, timeout_sec)
                for indexer in indexers
            )
        )
        merged: list[Candidate] = []
        for candidates in results:
            merged.extend(candidates)
        return merged

    async def search(self, media: MediaInfo, profile: UserProfile) -> FanoutResult:
        all_indexers = await self._gateway.list_indexers()
        chosen = select_indexers(all_indexers, media.kind, profile.indexers)
        indexers = self._tracker.fast_subset(chosen)
        timeout_sec = float(profile.indexer_timeout_sec)

        log.info(
            "indexer_fanout_start",
            media_id=media.media_id,
            indexers=[i.id for i in indexers],
            timeout_sec=timeout_sec,
        )
        t0 = time.perf_counter()

        if media.kind == "movie":
            candidates = await self._search_all(
                self._gateway.search_movies, media, indexers, timeout_sec
            )
            result = FanoutResult(candidates=candidates)
        else:
            episodes, seasons = await asyncio.gather(
                self._search_all(
                    self._gateway.search_episodes, media, indexers, timeout_sec
                ),
                self._search_all(
                    self._gateway.search_seasons, media, indexers, timeout_sec
                ),
            )
            matches = search_predicate(profile.qualities, profile.exclude_keywords)
            episodes = [c for c in episodes if matches(c)]
            packs = [
                c for c in seasons if matches(c) and is_season_pack(c.name, media.season)
            ]
            result = FanoutResult(candidates=episodes + packs, packs=packs)

        log.info(
            "indexer_fanout_done",
            media_id=media.media_id,
            candidates=len(result.candidates),
            packs=len(result.packs),
            duration_sec=round(time.perf_counter() - t0, 3),
        )
        return result
