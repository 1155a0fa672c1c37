"""Season pack detection for series search results."""

from __future__ import annotations

import re

_WORD_SPLIT = re.compile(r"[^a-z0-9]+")
_SEASON_RANGE = re.compile(r"s(\d{2,}) s(\d{2,})")
_EXPLICIT_SEASON = re.compile(r" (s\d{2,}|season \d) ")


def parse_words(text: str) -> list[str]:
    """Lower-case a release name and split it into alphanumeric words."""
    return [w for w in _WORD_SPLIT.split(text.lower()) if w]


def is_season_pack(name: str, season: int) -> bool:
    """Return True if ``name`` looks like a pack containing ``season``.

    Matches ``season N``, an ``sNN`` word, an ``sAA sBB`` range covering
    the season, or ``complete`` without any explicit season marker.
    """
    words = parse_words(name)
    words_str = " ".join(words)

    if f"season {season}" in words_str or f"s{season:02d}" in words:
        return True

    match = _SEASON_RANGE.search(words_str)
    if match and int(match.group(1)) <= season <= int(match.group(2)):
        return True

    return "complete" in words and not _EXPLICIT_SEASON.search(f" {words_str} ")
