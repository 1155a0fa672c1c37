"""Instant-availability check and cache-aware ordering of candidates."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

import structlog

from debridarr.domain.entities.media import MediaInfo
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.torrent import (
    Candidate,
    HashStatus,
    TorrentFile,
    TransferProgress,
)
from debridarr.domain.exceptions import DebridError, ExpiredCredential
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.infrastructure.cache.ttl_cache import TtlCache
from debridarr.infrastructure.debrid.base import batched
from debridarr.infrastructure.ranking.file_selector import search_episode_file
from debridarr.infrastructure.ranking.ranker import (
    language_predicate,
    prioritize,
    sort_candidates,
)
from debridarr.infrastructure.torrent_infos.passkey import passkey_matches

log = structlog.get_logger(__name__)

FileValidator = Callable[[Sequence[TorrentFile]], bool]

EXPIRED_KEY_TEXT = "Unable to verify cache (+): Expired Debrid API Key."
PASSKEY_REQUIRED_TEXT = "Uncached torrent require a passkey configuration"


def episode_validator(media: MediaInfo) -> FileValidator:
    """Cached file sets must contain the requested episode (series only)."""
    if media.kind != "series":
        return lambda files: True
    return lambda files: search_episode_file(files, media.season, media.episode) is not None


class AvailabilityResolver:
    """Folds debrid cache status into candidates.

    Args:
        batch_size: Hashes per ``check_cache`` call.
        status_ttl_seconds: Lifetime of the per-hash status short-cache.
        replace_passkey: Operator passkey substituted in private torrents
            ("" disables the passkey policy).
        passkey_pattern: Regex a user passkey must match.
        clock: Monotonic time source for the status short-cache.
    """

    def __init__(
        self,
        *,
        batch_size: int = 50,
        status_ttl_seconds: float = 300.0,
        replace_passkey: str = "",
        passkey_pattern: str = "[a-zA-Z0-9]+",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._batch_size = batch_size
        self._statuses: TtlCache[str, HashStatus] = TtlCache(
            status_ttl_seconds, clock=clock
        )
        self._replace_passkey = replace_passkey
        self._passkey_pattern = passkey_pattern

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _status_key(self, debrid: DebridBackendPort, info_hash: str) -> str:
        # Per account: some backends build statuses from the user's own torrents.
        return f"{debrid.id}:{debrid.short_name}:{debrid.user_hash()}:{info_hash}"

    async def _statuses_for(
        self, debrid: DebridBackendPort, hashes: list[str]
    ) -> dict[str, HashStatus]:
        statuses: dict[str, HashStatus] = {}
        unknown: list[str] = []
        for info_hash in hashes:
            cached = self._statuses.get(self._status_key(debrid, info_hash))
            if cached is not None:
                statuses[info_hash] = cached
            else:
                unknown.append(info_hash)

        for batch in batched(unknown, self._batch_size):
            try:
                found = await debrid.check_cache(batch)
            except ExpiredCredential:
                raise
            except DebridError:
                log.warning(
                    "debrid_cache_check_failed",
                    backend=debrid.short_name,
                    hashes=len(batch),
                    exc_info=True,
                )
                continue
            for info_hash, status in found.items():
                statuses[info_hash] = status
                self._statuses.set(self._status_key(debrid, info_hash), status)
        return statuses

    def _passkey_satisfied(self, profile: UserProfile) -> bool:
        if not self._replace_passkey:
            return True
        return passkey_matches(self._passkey_pattern, profile.passkey)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check_availability(
        self,
        debrid: DebridBackendPort,
        candidates: Sequence[Candidate],
        is_valid_files: FileValidator,
    ) -> list[Candidate]:
        """Tag candidates with their status; return the cached, valid ones."""
        hashes = list(dict.fromkeys(c.info_hash for c in candidates if c.info_hash))
        statuses = await self._statuses_for(debrid, hashes)

        cached: list[Candidate] = []
        for candidate in candidates:
            status = statuses.get(candidate.info_hash or "")
            if status is None:
                continue
            candidate.status = status.status
            if not status.is_cached:
                continue
            # Backends that list files must show the wanted one.
            if status.files is not None and not (
                status.files and is_valid_files(status.files)
            ):
                continue
            candidate.is_cached = True
            cached.append(candidate)
        return cached

    async def progress(
        self, debrid: DebridBackendPort, candidates: Sequence[Candidate]
    ) -> dict[str, TransferProgress]:
        hashes = [c.info_hash for c in candidates if c.info_hash]
        if not hashes:
            return {}
        return await debrid.get_progress(hashes)

    async def apply(
        self,
        debrid: DebridBackendPort,
        candidates: list[Candidate],
        media: MediaInfo,
        profile: UserProfile,
    ) -> list[Candidate]:
        """Order candidates cached-first; never raises for backend failures.

        An expired API key disables every candidate; any other failure
        leaves the list as it is.  A failed progress lookup keeps the
        computed order.
        """
        try:
            cached = await self.check_availability(
                debrid, candidates, episode_validator(media)
            )
            cached_ids = {id(c) for c in cached}
            uncached = [c for c in candidates if id(c) not in cached_ids]

            if not self._passkey_satisfied(profile):
                for candidate in uncached:
                    if candidate.private:
                        candidate.disabled = True
                        candidate.info_text = PASSKEY_REQUIRED_TEXT

            log.info(
                "debrid_cached_torrents",
                media_id=media.media_id,
                backend=debrid.short_name,
                cached=len(cached),
                uncached=len(uncached),
            )

            by_language = language_predicate(profile.prioritize_languages)
            ordered = prioritize(sort_candidates(cached, profile.sort_cached), by_language)
            if not profile.hide_uncached or not debrid.cache_check_available:
                ordered += prioritize(
                    sort_candidates(uncached, profile.sort_uncached), by_language
                )

        except ExpiredCredential:
            log.warning(
                "debrid_expired_api_key",
                media_id=media.media_id,
                backend=debrid.short_name,
            )
            for candidate in candidates:
                candidate.disabled = True
                candidate.info_text = EXPIRED_KEY_TEXT
            return candidates

        except Exception:
            log.warning(
                "debrid_availability_failed",
                media_id=media.media_id,
                backend=debrid.short_name,
                exc_info=True,
            )
            return candidates

        try:
            progress = await self.progress(debrid, ordered)
        except Exception:
            log.warning(
                "debrid_progress_failed",
                media_id=media.media_id,
                backend=debrid.short_name,
                exc_info=True,
            )
            return ordered
        for candidate in ordered:
            candidate.progress = progress.get(candidate.info_hash or "")
        return ordered
