"""Candidate filtering, sorting and prioritization.

Pure functions over lists of :class:`Candidate`; candidates are
reordered, never copied.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from debridarr.domain.entities.profile import SortKey
from debridarr.domain.entities.torrent import Candidate
from debridarr.infrastructure.ranking.pack_matcher import parse_words

Predicate = Callable[[Candidate], bool]

SEARCH_SORT: tuple[SortKey, ...] = (("seeders", True),)
# Extra slots kept before hash dedup, which may drop duplicates.
DEDUP_HEADROOM = 2


def sort_candidates(
    candidates: Iterable[Candidate], sort_keys: Sequence[SortKey]
) -> list[Candidate]:
    """Stable multi-key sort; ties fall through to the next key.

    Implemented as successive stable sorts from the least significant
    key to the most significant one.
    """
    items = list(candidates)
    for field_name, descending in reversed(sort_keys):
        items.sort(key=lambda c: c.sort_value(field_name), reverse=descending)
    return items


def prioritize(
    candidates: Sequence[Candidate], predicate: Predicate, max_items: int = 0
) -> list[Candidate]:
    """Move up to ``max_items`` matches (0 = all) to the front.

    Relative order inside both the moved and the remaining group is kept.
    """
    moved = [c for c in candidates if predicate(c)]
    if max_items > 0:
        moved = moved[:max_items]
    if not moved:
        return list(candidates)
    moved_ids = {id(c) for c in moved}
    return moved + [c for c in candidates if id(c) not in moved_ids]


def filter_candidates(
    candidates: Iterable[Candidate], *predicates: Predicate
) -> list[Candidate]:
    """Keep candidates matching every predicate."""
    return [c for c in candidates if all(p(c) for p in predicates)]


# ----------------------------------------------------------------------
# Predicates
# ----------------------------------------------------------------------


def language_predicate(prioritized_languages: Sequence[str]) -> Predicate:
    """Match candidates in a preferred language or tagged multi-language."""
    if not prioritized_languages:
        return lambda c: True
    wanted = {"multi", *prioritized_languages}
    return lambda c: any(lang.value in wanted for lang in c.languages)


def search_predicate(
    qualities: Iterable[int], exclude_keywords: Iterable[str]
) -> Predicate:
    """Allowed quality and no excluded keyword as a whole word."""
    allowed = set(qualities)
    excluded = [k.lower() for k in exclude_keywords if k]

    def _match(candidate: Candidate) -> bool:
        if int(candidate.quality) not in allowed:
            return False
        words = parse_words(candidate.name)
        return not any(keyword in words for keyword in excluded)

    return _match


def year_predicate(year: int | None) -> Predicate:
    """Candidates without a year count as same-year."""
    return lambda c: c.year is None or c.year == year


# ----------------------------------------------------------------------
# Search-phase narrowing
# ----------------------------------------------------------------------


def language_priority_slots(max_torrents: int) -> int:
    return max(1, round(max_torrents * 0.33))


def narrow_search_results(
    candidates: Sequence[Candidate],
    *,
    year: int | None,
    qualities: Iterable[int],
    exclude_keywords: Iterable[str],
    prioritize_languages: Sequence[str],
    max_torrents: int,
) -> list[Candidate]:
    """Reduce raw search hits to the few worth resolving.

    1. Prefer same-year candidates when any exist.
    2. Drop disallowed qualities and excluded keywords, sort by seeders,
       pull preferred languages to the front.
    3. Truncate to ``max_torrents`` plus dedup headroom.
    """
    items = list(candidates)
    if year is not None:
        same_year = filter_candidates(items, year_predicate(year))
        if same_year:
            items = same_year

    items = filter_candidates(items, search_predicate(qualities, exclude_keywords))
    items = sort_candidates(items, SEARCH_SORT)
    items = prioritize(
        items,
        language_predicate(prioritize_languages),
        language_priority_slots(max_torrents),
    )
    return items[: max_torrents + DEDUP_HEADROOM]


def promote_packs(
    candidates: list[Candidate], packs: Sequence[Candidate], count: int
) -> list[Candidate]:
    """Replace the tail with the best ``count`` packs if none survived."""
    if count <= 0 or not packs:
        return candidates
    pack_ids = {id(p) for p in packs}
    if any(id(c) in pack_ids for c in candidates):
        return candidates
    best = sort_candidates(packs, SEARCH_SORT)[:count]
    kept = candidates[: max(0, len(candidates) - len(best))]
    return kept + best
