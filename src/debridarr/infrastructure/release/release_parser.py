"""Release name parser using guessit for quality, year and language."""

from __future__ import annotations

import re
from dataclasses import dataclass

from guessit import guessit

from debridarr.domain.entities.torrent import Language, Quality
from debridarr.infrastructure.ranking.pack_matcher import parse_words

# --- Quality mappings ---

_SCREEN_SIZE_TO_QUALITY: dict[str, Quality] = {
    "2160p": Quality.UHD_4K,
    "4320p": Quality.UHD_4K,
    "1080p": Quality.HD_1080,
    "1080i": Quality.HD_1080,
    "720p": Quality.HD_720,
    "576p": Quality.SD_480,
    "480p": Quality.SD_480,
    "480i": Quality.SD_480,
    "360p": Quality.SD_360,
}

_BADGE_TO_QUALITY: dict[str, Quality] = {
    "4k": Quality.UHD_4K,
    "uhd": Quality.UHD_4K,
    "fhd": Quality.HD_1080,
}

# --- Language catalog ---


@dataclass(frozen=True)
class _LanguageRule:
    language: Language
    pattern: re.Pattern[str]


def _rule(value: str, emoji: str, iso639: str, pattern: str) -> _LanguageRule:
    return _LanguageRule(
        language=Language(value=value, emoji=emoji, iso639=iso639),
        pattern=re.compile(rf" {pattern} ", re.IGNORECASE),
    )


LANGUAGE_RULES: tuple[_LanguageRule, ...] = (
    _rule("multi", "🌎", "", "multi"),
    _rule("arabic", "🇦🇪", "ar", "arabic"),
    _rule("chinese", "🇨🇳", "zh", "chinese"),
    _rule("german", "🇩🇪", "de", "german"),
    _rule("english", "🇺🇸", "en", "(eng(lish)?)"),
    _rule("spanish", "🇪🇸", "es", "spa(nish)?"),
    _rule("french", "🇫🇷", "fr", "fre(nch)?"),
    _rule("dutch", "🇳🇱", "nl", "dutch"),
    _rule("italian", "🇮🇹", "it", "ita(lian)?"),
    _rule("lithuanian", "🇱🇹", "lt", "lithuanian"),
    _rule("korean", "🇰🇷", "ko", "korean"),
    _rule("portuguese", "🇵🇹", "pt", "portuguese"),
    _rule("brazilian", "🇧🇷", "pt-br", "portuguese"),
    _rule("russian", "🇷🇺", "ru", "rus(sian)?"),
    _rule("swedish", "🇸🇪", "sv", "swedish"),
    _rule("tamil", "🇮🇳", "ta", "tamil"),
    _rule("turkish", "🇹🇷", "tr", "turkish"),
)

LANGUAGES: tuple[Language, ...] = tuple(rule.language for rule in LANGUAGE_RULES)

_BY_ISO639: dict[str, Language] = {}
for _lang in LANGUAGES:
    # First entry wins ("portuguese" over "brazilian").
    if _lang.iso639:
        _BY_ISO639.setdefault(_lang.iso639, _lang)
_BY_ISO639["mul"] = LANGUAGES[0]


def _as_list(value: object) -> list[object]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _guessit_languages(guess: dict) -> list[Language]:
    found: list[Language] = []
    for lang_obj in _as_list(guess.get("language")):
        # babelfish renders alpha2 when one exists, else alpha3 ("mul")
        lang = _BY_ISO639.get(str(lang_obj).lower())
        if lang is not None:
            found.append(lang)
    return found


# --- Public API ---


@dataclass(frozen=True)
class ReleaseInfo:
    quality: Quality = Quality.UNKNOWN
    year: int | None = None
    languages: tuple[Language, ...] = ()


def _quality(guess: dict, words: list[str]) -> Quality:
    screen_size = guess.get("screen_size")
    if isinstance(screen_size, str) and screen_size in _SCREEN_SIZE_TO_QUALITY:
        return _SCREEN_SIZE_TO_QUALITY[screen_size]
    for word in words:
        if word in _BADGE_TO_QUALITY:
            return _BADGE_TO_QUALITY[word]
    return Quality.UNKNOWN


def _languages(guess: dict, words: list[str]) -> tuple[Language, ...]:
    padded = f" {' '.join(words)} "
    found = [rule.language for rule in LANGUAGE_RULES if rule.pattern.search(padded)]
    for lang in _guessit_languages(guess):
        if lang not in found:
            found.append(lang)
    return tuple(found)


def parse_release(release_name: str) -> ReleaseInfo:
    """Parse quality, year and languages from a release name.

    Quality comes from guessit's screen_size, else from badge words
    (4K, UHD, FHD).  Languages are matched against the catalog
    patterns, then completed with guessit's detected languages.
    """
    guess = dict(guessit(release_name))
    words = parse_words(release_name)
    year = guess.get("year")
    return ReleaseInfo(
        quality=_quality(guess, words),
        year=year if isinstance(year, int) else None,
        languages=_languages(guess, words),
    )


def parse_quality(release_name: str) -> Quality:
    return parse_release(release_name).quality


def parse_languages(release_name: str) -> tuple[Language, ...]:
    return parse_release(release_name).languages


def language_by_value(value: str) -> Language | None:
    for lang in LANGUAGES:
        if lang.value == value:
            return lang
    return None
