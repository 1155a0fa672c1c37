"""Per-indexer latency ledger used to route around slow indexers.

A search counts toward the ledger only when its allotted timeout is
above ``min_timeout_ms``; short probe searches would otherwise mark
every indexer as slow.  A duration above ``slow_duration_ms`` is
appended to the indexer's window, any faster answer empties it.  Once
``max_slow_requests`` slow entries are inside ``window_seconds`` the
indexer is no longer "fast".
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from debridarr.domain.entities.torrent import IndexerInfo

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IndexerStats:
    """Aggregate of the slow entries inside the live window."""

    min: int = 0
    avg: int = 0
    max: int = 0
    count: int = 0


class SlowIndexerTracker:
    """Sliding-window slow-response ledger, one deque per indexer.

    Owned by the composition root and injected into the fan-out; tests
    build isolated instances.  Safe for single-threaded asyncio: every
    mutation is a single append or reset without awaiting.

    Args:
        slow_duration_ms: Responses slower than this are "slow".
        window_seconds: Age after which a slow entry is forgotten.
        max_slow_requests: Slow entries that exclude an indexer (<= 0 disables).
        min_timeout_ms: Only searches with a larger timeout are recorded
            (defaults to ``slow_duration_ms``).
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        *,
        slow_duration_ms: int = 20_000,
        window_seconds: float = 1800.0,
        max_slow_requests: int = 5,
        min_timeout_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._slow_ms = slow_duration_ms
        self._window = window_seconds
        self._max_slow = max_slow_requests
        self._min_timeout_ms = (
            slow_duration_ms if min_timeout_ms is None else min_timeout_ms
        )
        self._clock = clock
        self._entries: dict[str, deque[tuple[int, float]]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, indexer_id: str, duration_ms: int, timeout_ms: int) -> bool:
        """Record one search duration. Returns True if it counted as slow."""
        if timeout_ms <= self._min_timeout_ms:
            return False

        if duration_ms > self._slow_ms:
            self._entries.setdefault(indexer_id, deque()).append(
                (duration_ms, self._clock())
            )
            log.info(
                "slow_indexer_detected",
                indexer=indexer_id,
                duration_ms=duration_ms,
            )
            return True

        # One fast answer forgives all previous slow ones.
        self._entries[indexer_id] = deque()
        return False

    def is_fast(self, indexer_id: str) -> bool:
        if self._max_slow <= 0:
            return True
        return self.stats(indexer_id).count < self._max_slow

    def stats(self, indexer_id: str) -> IndexerStats:
        durations = [d for d, _ in self._live_entries(indexer_id)]
        if not durations:
            return IndexerStats()
        return IndexerStats(
            min=min(durations),
            avg=round(sum(durations) / len(durations)),
            max=max(durations),
            count=len(durations),
        )

    def fast_subset(self, indexers: Sequence[IndexerInfo]) -> list[IndexerInfo]:
        """Return the fast indexers, or all of them if none is fast."""
        fast = [indexer for indexer in indexers if self.is_fast(indexer.id)]
        if fast:
            return fast
        if indexers:
            log.info("slow_indexer_filter_skipped", indexers=len(indexers))
        return list(indexers)

    def snapshot(self) -> dict[str, dict[str, object]]:
        """Return a diagnostic snapshot of all tracked indexers."""
        result: dict[str, dict[str, object]] = {}
        for indexer_id in sorted(self._entries):
            stats = self.stats(indexer_id)
            result[indexer_id] = {
                "fast": self.is_fast(indexer_id),
                "min_ms": stats.min,
                "avg_ms": stats.avg,
                "max_ms": stats.max,
                "slow_count": stats.count,
            }
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _live_entries(self, indexer_id: str) -> deque[tuple[int, float]]:
        """Prune entries older than the window and return the rest."""
        entries = self._entries.get(indexer_id)
        if entries is None:
            return deque()
        cutoff = self._clock() - self._window
        while entries and entries[0][1] <= cutoff:
            entries.popleft()
        return entries
