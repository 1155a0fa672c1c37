from .media import EpisodeRef, MediaInfo, MediaKind, MediaQuery, parse_media_id
from .profile import SortKey, UserProfile
from .stream import DownloadResult, StreamEntry
from .torrent import (
    Candidate,
    DebridFile,
    HashStatus,
    IndexerInfo,
    Language,
    Quality,
    TorrentFile,
    TorrentInfos,
    TransferProgress,
)

__all__ = [
    "Candidate",
    "DebridFile",
    "DownloadResult",
    "EpisodeRef",
    "HashStatus",
    "IndexerInfo",
    "Language",
    "MediaInfo",
    "MediaKind",
    "MediaQuery",
    "Quality",
    "SortKey",
    "StreamEntry",
    "TorrentFile",
    "TorrentInfos",
    "TransferProgress",
    "UserProfile",
    "parse_media_id",
]
