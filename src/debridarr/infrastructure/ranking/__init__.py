from .file_selector import search_episode_file, select_file
from .pack_matcher import is_season_pack, parse_words
from .ranker import (
    filter_candidates,
    language_predicate,
    narrow_search_results,
    prioritize,
    promote_packs,
    sort_candidates,
)

__all__ = [
    "filter_candidates",
    "is_season_pack",
    "language_predicate",
    "narrow_search_results",
    "parse_words",
    "prioritize",
    "promote_packs",
    "search_episode_file",
    "select_file",
    "sort_candidates",
]
