"""Private-tracker passkey substitution.

The operator's own passkey is embedded in the announce URLs of torrents
fetched through the operator's Jackett.  Before an uncached private
torrent is uploaded to a user's debrid account, the operator passkey is
swapped for the user's one.  Only ``announce`` and ``announce-list`` are
touched, so the info hash stays the same.
"""

from __future__ import annotations

import re
from typing import Any

import bencodepy

from debridarr.domain.exceptions import InvalidPasskey
from debridarr.infrastructure.torrent_infos.bencode_utils import decode_torrent


def passkey_matches(pattern: str, passkey: str) -> bool:
    """True when ``passkey`` is set and contains a match of ``pattern``."""
    return bool(passkey) and re.search(pattern, passkey) is not None


def _swap(value: bytes, operator: bytes, user: bytes) -> bytes:
    return value.replace(operator, user)


def _swap_tiers(tiers: list[Any], operator: bytes, user: bytes) -> list[Any]:
    return [
        [_swap(url, operator, user) if isinstance(url, bytes) else url for url in tier]
        if isinstance(tier, list)
        else tier
        for tier in tiers
    ]


def replace_passkey(
    buffer: bytes,
    *,
    operator_passkey: str,
    user_passkey: str,
    pattern: str = "[a-zA-Z0-9]+",
) -> bytes:
    """Return ``buffer`` re-encoded with the user's passkey in the trackers.

    Raises:
        InvalidPasskey: ``user_passkey`` does not match ``pattern``.
    """
    if not passkey_matches(pattern, user_passkey):
        raise InvalidPasskey(f"Invalid user passkey, pattern not match: {pattern}")

    torrent = decode_torrent(buffer)
    operator = operator_passkey.encode()
    user = user_passkey.encode()

    if isinstance(torrent.get(b"announce"), bytes):
        torrent[b"announce"] = _swap(torrent[b"announce"], operator, user)
    if isinstance(torrent.get(b"announce-list"), list):
        torrent[b"announce-list"] = _swap_tiers(
            torrent[b"announce-list"], operator, user
        )
    return bencodepy.encode(torrent)
