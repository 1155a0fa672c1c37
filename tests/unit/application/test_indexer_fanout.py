"""Tests for IndexerFanout, indexer selection and run_with_deadline."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from debridarr.application.pipeline.deadline import abandoned_count, run_with_deadline
from debridarr.application.pipeline.fanout import IndexerFanout, select_indexers
from debridarr.domain.entities import (
    Candidate,
    IndexerInfo,
    MediaInfo,
    Quality,
    UserProfile,
)
from debridarr.domain.exceptions import NoBackendConfigured
from debridarr.infrastructure.slow_indexer_tracker import SlowIndexerTracker

MOVIE_ONLY = IndexerInfo("yts", "YTS", movie_available=True, series_available=False)
TV_ONLY = IndexerInfo("eztv", "EZTV", movie_available=False, series_available=True)
BOTH = IndexerInfo("1337x", "1337x")


def _candidate(name: str, indexer_id: str, **kwargs: Any) -> Candidate:
    return Candidate(name=name, indexer_id=indexer_id, **kwargs)


class FakeGateway:
    """IndexerGatewayPort with scripted per-indexer behavior."""

    def __init__(
        self,
        indexers: list[IndexerInfo],
        *,
        delays: dict[str, float] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.indexers = indexers
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: list[tuple[str, str]] = []

    async def list_indexers(self) -> list[IndexerInfo]:
        return self.indexers

    async def _hits(self, kind: str, indexer_id: str, names: list[str]) -> list[Candidate]:
        self.calls.append((kind, indexer_id))
        await asyncio.sleep(self.delays.get(indexer_id, 0))
        if indexer_id in self.errors:
            raise self.errors[indexer_id]
        return [_candidate(n, indexer_id, quality=Quality.HD_1080) for n in names]

    async def search_movies(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        return await self._hits("movie", indexer_id, [f"Movie.{indexer_id}.1080p"])

    async def search_episodes(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        return await self._hits("episode", indexer_id, [f"Show.S01E02.{indexer_id}"])

    async def search_seasons(self, media: MediaInfo, indexer_id: str) -> list[Candidate]:
        return await self._hits(
            "season", indexer_id, [f"Show.S01.{indexer_id}", f"Show.S03.{indexer_id}"]
        )


class TestSelectIndexers:
    def test_all_filters_by_kind(self) -> None:
        chosen = select_indexers([MOVIE_ONLY, TV_ONLY, BOTH], "movie", ["all"])
        assert [i.id for i in chosen] == ["yts", "1337x"]

    def test_allow_list(self) -> None:
        chosen = select_indexers([MOVIE_ONLY, TV_ONLY, BOTH], "series", ["eztv"])
        assert [i.id for i in chosen] == ["eztv"]

    def test_allow_list_unavailable_falls_back_to_kind(self) -> None:
        chosen = select_indexers([MOVIE_ONLY, TV_ONLY], "series", ["yts"])
        assert [i.id for i in chosen] == ["eztv"]

    def test_no_kind_capable_falls_back_to_all(self) -> None:
        chosen = select_indexers([MOVIE_ONLY], "series", ["all"])
        assert chosen == [MOVIE_ONLY]

    def test_no_indexer(self) -> None:
        with pytest.raises(NoBackendConfigured):
            select_indexers([], "movie", ["all"])


class TestRunWithDeadline:
    async def test_returns_result(self) -> None:
        async def quick() -> int:
            return 1

        assert await run_with_deadline(quick(), 1.0) == 1

    async def test_timeout_abandons_call(self) -> None:
        finished = asyncio.Event()

        async def slow() -> int:
            await asyncio.sleep(0.05)
            finished.set()
            return 1

        with pytest.raises(TimeoutError):
            await run_with_deadline(slow(), 0.01)
        assert abandoned_count() >= 1
        # The abandoned call keeps running to completion.
        await asyncio.wait_for(finished.wait(), timeout=1.0)


class TestIndexerFanout:
    async def test_movie_search_merges_results(self, movie_media: MediaInfo) -> None:
        gateway = FakeGateway([MOVIE_ONLY, BOTH, TV_ONLY])
        fanout = IndexerFanout(gateway=gateway, tracker=SlowIndexerTracker())
        result = await fanout.search(movie_media, UserProfile())
        assert {c.indexer_id for c in result.candidates} == {"yts", "1337x"}
        assert result.packs == []
        assert all(kind == "movie" for kind, _ in gateway.calls)

    async def test_failing_indexer_contributes_nothing(self, movie_media: MediaInfo) -> None:
        gateway = FakeGateway([MOVIE_ONLY, BOTH], errors={"yts": RuntimeError("down")})
        fanout = IndexerFanout(gateway=gateway, tracker=SlowIndexerTracker())
        result = await fanout.search(movie_media, UserProfile())
        assert [c.indexer_id for c in result.candidates] == ["1337x"]

    async def test_slow_indexer_times_out_and_is_recorded(
        self, movie_media: MediaInfo
    ) -> None:
        gateway = FakeGateway([MOVIE_ONLY, BOTH], delays={"yts": 1.5})
        tracker = SlowIndexerTracker(slow_duration_ms=10, min_timeout_ms=0)
        fanout = IndexerFanout(gateway=gateway, tracker=tracker)
        profile = UserProfile(indexer_timeout_sec=1)

        loop = asyncio.get_running_loop()
        start = loop.time()
        result = await fanout.search(movie_media, profile)

        assert loop.time() - start < 3
        assert [c.indexer_id for c in result.candidates] == ["1337x"]
        assert tracker.stats("yts").count == 1

    async def test_series_search_splits_packs(self, episode_media: MediaInfo) -> None:
        gateway = FakeGateway([TV_ONLY])
        fanout = IndexerFanout(gateway=gateway, tracker=SlowIndexerTracker())
        result = await fanout.search(episode_media, UserProfile())

        assert [c.name for c in result.packs] == ["Show.S01.eztv"]
        assert [c.name for c in result.candidates] == ["Show.S01E02.eztv", "Show.S01.eztv"]
        assert {kind for kind, _ in gateway.calls} == {"episode", "season"}

    async def test_series_filters_quality(self, episode_media: MediaInfo) -> None:
        gateway = FakeGateway([TV_ONLY])
        fanout = IndexerFanout(gateway=gateway, tracker=SlowIndexerTracker())
        result = await fanout.search(episode_media, UserProfile(qualities=(720,)))
        assert result.candidates == []
