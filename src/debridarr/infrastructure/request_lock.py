"""Per-key mutual exclusion for identical in-flight requests.

A second caller presenting a key that is already held waits until the
holder releases it, then runs its own body (no result sharing).  Waiters
are woken through an :class:`asyncio.Condition` instead of polling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import AsyncIterator, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class RequestLock:
    """Keyed async lock, shared process-wide.

    Keys are released in a ``finally`` block, so a body that raises or
    gets cancelled never leaves its key held.
    """

    def __init__(self) -> None:
        self._held: set[str] = set()
        self._condition = asyncio.Condition()

    def is_held(self, key: str) -> bool:
        return key in self._held

    @property
    def held_count(self) -> int:
        return len(self._held)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold ``key`` for the duration of the ``async with`` block."""
        async with self._condition:
            if key in self._held:
                log.debug("request_lock_wait", key=key)
            await self._condition.wait_for(lambda: key not in self._held)
            self._held.add(key)
        try:
            yield
        finally:
            async with self._condition:
                self._held.discard(key)
                self._condition.notify_all()

    async def run_exclusive(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Await ``fn()`` while holding ``key``."""
        async with self.hold(key):
            return await fn()
