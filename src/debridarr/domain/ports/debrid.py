"""Port for debrid storage backends."""

from __future__ import annotations

from typing import Any, ClassVar, Protocol, runtime_checkable

from debridarr.domain.entities.torrent import DebridFile, HashStatus, TransferProgress


@runtime_checkable
class DebridBackendPort(Protocol):
    """Capability set every debrid backend implements.

    Errors:
        ExpiredCredential: API key rejected.
        NotReady: torrent still downloading on the backend.
        DebridError: any other backend-reported failure.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    config_fields: ClassVar[list[dict[str, Any]]]

    short_name: str
    # False when the backend cannot tell cached from uncached torrents.
    cache_check_available: bool
    cached_icon: str
    uncached_icon: str

    async def check_cache(self, hashes: list[str]) -> dict[str, HashStatus]:
        """Return the status of every hash the backend knows about."""
        ...

    async def get_progress(self, hashes: list[str]) -> dict[str, TransferProgress]: ...

    async def add_magnet(self, magnet_url: str) -> str:
        """Add a magnet and return the backend handle."""
        ...

    async def add_torrent_file(self, buffer: bytes, info_hash: str) -> str:
        """Upload a .torrent file and return the backend handle."""
        ...

    async def list_files(self, handle: str) -> list[DebridFile]:
        """List files of an added torrent, waiting briefly for the backend."""
        ...

    async def resolve_download(self, file: DebridFile) -> str | None:
        """Return a direct download URL for ``file``."""
        ...

    def user_hash(self) -> str:
        """Stable, non-reversible identity of the account (cache key part)."""
        ...
