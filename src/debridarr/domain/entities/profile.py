"""Per-request user configuration (resolved, immutable)."""

from __future__ import annotations

from dataclasses import dataclass

# (field, descending)
SortKey = tuple[str, bool]


@dataclass(frozen=True)
class UserProfile:
    """User configuration merged from operator defaults and caller overrides."""

    qualities: tuple[int, ...] = (0, 720, 1080)
    exclude_keywords: tuple[str, ...] = ()
    max_torrents: int = 8
    prioritize_languages: tuple[str, ...] = ()
    prioritize_pack_torrents: int = 2
    force_cache_next_episode: bool = False
    sort_cached: tuple[SortKey, ...] = (("quality", True), ("size", True))
    sort_uncached: tuple[SortKey, ...] = (("seeders", True),)
    hide_uncached: bool = False
    indexers: tuple[str, ...] = ("all",)
    indexer_timeout_sec: int = 60
    passkey: str = ""
    meta_language: str = ""

    enable_mediaflow: bool = False
    mediaflow_proxy_url: str = ""
    mediaflow_api_password: str = ""
    mediaflow_public_ip: str = ""

    use_stremthru: bool = True
    stremthru_url: str = "https://stremthru.13377001.xyz"
    stremthru_store: str = "realdebrid"
    debrid_id: str = "realdebrid"
    debrid_api_key: str = ""

    client_ip: str = ""
