"""Deadlines that abandon slow calls instead of cancelling them."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")

# Strong references to calls still running after their deadline fired.
_abandoned: set[asyncio.Future] = set()


def _forget(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if not task.cancelled() and task.exception() is not None:
        log.debug("abandoned_call_failed", error=str(task.exception()))


async def run_with_deadline(awaitable: Awaitable[T], timeout: float) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    On timeout the underlying call keeps running in the background
    (shielded) and its late result is dropped; the caller gets
    ``TimeoutError`` immediately.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
    except TimeoutError:
        if not task.done():
            _abandoned.add(task)
            task.add_done_callback(_forget)
        raise


def abandoned_count() -> int:
    """Number of abandoned calls that have not finished yet."""
    return len(_abandoned)
