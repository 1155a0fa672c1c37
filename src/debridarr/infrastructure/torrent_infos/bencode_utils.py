"""Helpers around bencodepy for .torrent files and magnet links."""

from __future__ import annotations

import base64
import hashlib
import re
from typing import Any
from urllib.parse import parse_qs, urlsplit

import bencodepy

from debridarr.domain.entities.torrent import TorrentFile

_BTIH = re.compile(r"^urn:btih:([a-z0-9]+)$", re.IGNORECASE)


class InvalidTorrent(ValueError):
    """The payload is neither a valid .torrent file nor a btih magnet."""


def _text(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def decode_torrent(data: bytes) -> dict[bytes, Any]:
    try:
        decoded = bencodepy.decode(data)
    except (bencodepy.DecodingError, ValueError) as e:
        raise InvalidTorrent(f"Invalid bencoded torrent: {e}") from e
    if not isinstance(decoded, dict) or not isinstance(decoded.get(b"info"), dict):
        raise InvalidTorrent("Torrent has no info dictionary")
    return decoded


def info_hash(torrent: dict[bytes, Any]) -> str:
    """SHA-1 of the bencoded info dictionary (lower-case hex)."""
    return hashlib.sha1(bencodepy.encode(torrent[b"info"])).hexdigest().lower()


def torrent_files(torrent: dict[bytes, Any]) -> tuple[TorrentFile, ...]:
    info = torrent[b"info"]
    root = _text(info.get(b"name.utf-8") or info.get(b"name", b""))
    if b"files" not in info:
        return (TorrentFile(name=root, size=int(info.get(b"length", 0))),)
    files = []
    for entry in info[b"files"]:
        parts = entry.get(b"path.utf-8") or entry.get(b"path") or []
        files.append(
            TorrentFile(
                name="/".join(_text(p) for p in parts),
                size=int(entry.get(b"length", 0)),
            )
        )
    return tuple(files)


def is_private(torrent: dict[bytes, Any]) -> bool:
    return int(torrent[b"info"].get(b"private", 0)) == 1


def magnet_info_hash(magnet_url: str) -> str:
    """Extract the btih of a magnet link as lower-case hex.

    Accepts both 40-char hex and 32-char base32 hashes.
    """
    params = parse_qs(urlsplit(magnet_url).query)
    for xt in params.get("xt", []):
        match = _BTIH.match(xt)
        if not match:
            continue
        value = match.group(1)
        if len(value) == 40:
            return value.lower()
        if len(value) == 32:
            return base64.b32decode(value.upper()).hex()
    raise InvalidTorrent(f"No btih hash in magnet: {magnet_url[:80]}")


def magnet_from_hash(info_hash_hex: str) -> str:
    return f"magnet:?xt=urn:btih:{info_hash_hex}"
