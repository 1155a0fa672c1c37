from .bencode_utils import InvalidTorrent, magnet_from_hash, magnet_info_hash
from .passkey import passkey_matches, replace_passkey
from .resolver import HttpxTorrentInfoResolver, torrent_id_for

__all__ = [
    "HttpxTorrentInfoResolver",
    "InvalidTorrent",
    "magnet_from_hash",
    "magnet_info_hash",
    "passkey_matches",
    "replace_passkey",
    "torrent_id_for",
]
