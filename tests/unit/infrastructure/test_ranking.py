"""Tests for candidate ranking, pack matching and file selection."""

from __future__ import annotations

from typing import Any

from debridarr.domain.entities import Candidate, Language, Quality, TorrentFile
from debridarr.infrastructure.ranking import (
    is_season_pack,
    language_predicate,
    narrow_search_results,
    parse_words,
    prioritize,
    promote_packs,
    search_episode_file,
    select_file,
    sort_candidates,
)

FRENCH = Language("french", "🇫🇷", "fr")
MULTI = Language("multi", "🌎")


def make_candidate(name: str = "Movie.2020.1080p", **kwargs: Any) -> Candidate:
    kwargs.setdefault("indexer_id", "yts")
    return Candidate(name=name, **kwargs)


class TestSortCandidates:
    def test_multi_key_sort_with_ties(self) -> None:
        a = make_candidate("a", quality=Quality.HD_1080, size=1)
        b = make_candidate("b", quality=Quality.HD_1080, size=5)
        c = make_candidate("c", quality=Quality.HD_720, size=9)
        ordered = sort_candidates([c, a, b], [("quality", True), ("size", True)])
        assert [x.name for x in ordered] == ["b", "a", "c"]

    def test_ascending(self) -> None:
        a = make_candidate("a", seeders=3)
        b = make_candidate("b", seeders=1)
        assert [x.name for x in sort_candidates([a, b], [("seeders", False)])] == ["b", "a"]


class TestPrioritize:
    def test_moves_matches_keeping_order(self) -> None:
        items = [make_candidate(n, seeders=i) for i, n in enumerate("abcd")]
        result = prioritize(items, lambda c: c.name in ("b", "d"))
        assert [x.name for x in result] == ["b", "d", "a", "c"]

    def test_max_items_limits_moved(self) -> None:
        items = [make_candidate(n) for n in "abcd"]
        result = prioritize(items, lambda c: c.name in ("c", "d"), max_items=1)
        assert [x.name for x in result] == ["c", "a", "b", "d"]

    def test_language_predicate_accepts_multi(self) -> None:
        pred = language_predicate(["french"])
        assert pred(make_candidate(languages=(MULTI,)))
        assert pred(make_candidate(languages=(FRENCH,)))
        assert not pred(make_candidate(languages=()))

    def test_no_languages_matches_everything(self) -> None:
        assert language_predicate([])(make_candidate())


class TestNarrowSearchResults:
    def _narrow(self, items, **kwargs):
        params = {
            "year": None,
            "qualities": [0, 720, 1080],
            "exclude_keywords": [],
            "prioritize_languages": [],
            "max_torrents": 8,
        }
        params.update(kwargs)
        return narrow_search_results(items, **params)

    def test_prefers_same_year(self) -> None:
        same = make_candidate("same", year=1999)
        other = make_candidate("other", year=2003)
        undated = make_candidate("undated")
        result = self._narrow([same, other, undated], year=1999)
        assert {c.name for c in result} == {"same", "undated"}

    def test_keeps_all_when_no_year_matches(self) -> None:
        other = make_candidate("other", year=2003)
        assert self._narrow([other], year=1999) == [other]

    def test_filters_quality_and_keywords(self) -> None:
        uhd = make_candidate("Movie.2160p", quality=Quality.UHD_4K)
        cam = make_candidate("Movie.CAM.720p", quality=Quality.HD_720)
        camera = make_candidate("Movie.Camera.720p", quality=Quality.HD_720)
        result = self._narrow([uhd, cam, camera], exclude_keywords=["cam"])
        assert result == [camera]

    def test_sorted_by_seeders_and_truncated(self) -> None:
        items = [make_candidate(str(i), seeders=i) for i in range(20)]
        result = self._narrow(items, max_torrents=3)
        # max_torrents plus dedup headroom
        assert [c.seeders for c in result] == [19, 18, 17, 16, 15]

    def test_language_slots(self) -> None:
        items = [make_candidate(str(i), seeders=100 - i) for i in range(5)]
        french = [make_candidate(f"fr{i}", seeders=i, languages=(FRENCH,)) for i in range(3)]
        result = self._narrow(items + french, max_torrents=6, prioritize_languages=["french"])
        # round(6 * 0.33) == 2 slots
        assert [c.name for c in result[:2]] == ["fr2", "fr1"]
        assert result[2].name == "0"


class TestPromotePacks:
    def test_replaces_tail_when_no_pack_survived(self) -> None:
        kept = [make_candidate(n) for n in "abc"]
        packs = [make_candidate("p1", seeders=1), make_candidate("p2", seeders=9)]
        result = promote_packs(kept, packs, 1)
        assert [c.name for c in result] == ["a", "b", "p2"]

    def test_untouched_when_pack_present(self) -> None:
        pack = make_candidate("pack")
        kept = [make_candidate("a"), pack]
        assert promote_packs(kept, [pack], 2) == kept

    def test_zero_count(self) -> None:
        kept = [make_candidate("a")]
        assert promote_packs(kept, [make_candidate("p")], 0) == kept


class TestPackMatcher:
    def test_parse_words(self) -> None:
        assert parse_words("Show.Name-S01[1080p]") == ["show", "name", "s01", "1080p"]

    def test_season_word(self) -> None:
        assert is_season_pack("Show S02 1080p", 2)
        assert is_season_pack("Show Season 2 Complete", 2)
        assert not is_season_pack("Show S03 1080p", 2)

    def test_season_range(self) -> None:
        assert is_season_pack("Show S01-S05 Pack", 3)
        assert not is_season_pack("Show S01-S02 Pack", 3)

    def test_complete_without_season(self) -> None:
        assert is_season_pack("Show Complete Series 720p", 4)
        assert not is_season_pack("Show S01 Complete", 4)


class TestFileSelector:
    FILES = [
        TorrentFile("Show.S01E01.mkv", 900),
        TorrentFile("Show.S01E02.mkv", 800),
        TorrentFile("sample.mkv", 10),
        TorrentFile("extras/Show.Bonus.mkv", 1000),
    ]

    def test_episode_pattern(self) -> None:
        found = search_episode_file(self.FILES, 1, 2)
        assert found is not None and found.name == "Show.S01E02.mkv"

    def test_short_pattern(self) -> None:
        files = [TorrentFile("show 103.avi", 1)]
        found = search_episode_file(files, 1, 3)
        assert found is files[0]

    def test_no_match(self) -> None:
        assert search_episode_file([TorrentFile("movie.mkv", 1)], 2, 7) is None

    def test_movie_picks_largest(self) -> None:
        selected = select_file(self.FILES, "movie")
        assert selected is not None and selected.name == "extras/Show.Bonus.mkv"

    def test_series_picks_episode(self) -> None:
        selected = select_file(self.FILES, "series", 1, 1)
        assert selected is not None and selected.name == "Show.S01E01.mkv"

    def test_series_falls_back_to_largest(self) -> None:
        selected = select_file(self.FILES, "series", 3, 9)
        assert selected is not None and selected.name == "extras/Show.Bonus.mkv"

    def test_empty(self) -> None:
        assert select_file([], "movie") is None
