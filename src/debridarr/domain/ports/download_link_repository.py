"""Port for resolved download URL persistence."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DownloadLinkRepository(Protocol):
    """Async interface for caching resolved download URLs by request key."""

    async def save(self, key: str, url: str) -> None: ...

    async def get(self, key: str) -> str | None: ...
