"""Hand a resolved torrent to the debrid backend and list its files."""

from __future__ import annotations

import structlog

from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.torrent import DebridFile, TorrentInfos
from debridarr.domain.ports.debrid import DebridBackendPort
from debridarr.domain.ports.torrent_infos import TorrentInfoResolverPort
from debridarr.infrastructure.torrent_infos.bencode_utils import magnet_from_hash
from debridarr.infrastructure.torrent_infos.passkey import replace_passkey

log = structlog.get_logger(__name__)


class DebridFileFetcher:
    """Adds a torrent to the user's debrid account.

    Magnets are added as-is.  ``.torrent`` files of private trackers get
    the operator passkey swapped for the user's one; without a user
    passkey only the bare hash is sent, so the operator passkey never
    leaves the server.

    Args:
        resolver: Source of the stored ``.torrent`` bytes.
        replace_passkey: Operator passkey ("" disables the rewrite).
        passkey_pattern: Regex a user passkey must match.
    """

    def __init__(
        self,
        *,
        resolver: TorrentInfoResolverPort,
        replace_passkey: str = "",
        passkey_pattern: str = "[a-zA-Z0-9]+",
    ) -> None:
        self._resolver = resolver
        self._replace_passkey = replace_passkey
        self._passkey_pattern = passkey_pattern

    async def _add(
        self, profile: UserProfile, infos: TorrentInfos, debrid: DebridBackendPort
    ) -> str:
        if infos.magnet_url:
            return await debrid.add_magnet(infos.magnet_url)

        if self._replace_passkey and infos.private:
            if not profile.passkey:
                log.debug("debrid_add_hash_only", info_hash=infos.info_hash)
                return await debrid.add_magnet(magnet_from_hash(infos.info_hash))
            buffer = replace_passkey(
                await self._resolver.get_torrent_file(infos),
                operator_passkey=self._replace_passkey,
                user_passkey=profile.passkey,
                pattern=self._passkey_pattern,
            )
        else:
            buffer = await self._resolver.get_torrent_file(infos)
        return await debrid.add_torrent_file(buffer, infos.info_hash)

    async def fetch(
        self, profile: UserProfile, infos: TorrentInfos, debrid: DebridBackendPort
    ) -> list[DebridFile]:
        """Add the torrent and return the backend's file list.

        Raises:
            InvalidPasskey: the user passkey does not match the pattern.
            NotReady: the backend is still downloading.
            DebridError: any other backend failure.
        """
        handle = await self._add(profile, infos, debrid)
        files = await debrid.list_files(handle)
        log.debug(
            "debrid_files_listed",
            backend=debrid.short_name,
            info_hash=infos.info_hash,
            files=len(files),
        )
        return files
