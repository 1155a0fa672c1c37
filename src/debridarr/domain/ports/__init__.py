from .cache import CachePort
from .debrid import DebridBackendPort
from .download_link_repository import DownloadLinkRepository
from .indexer_gateway import IndexerGatewayPort
from .metadata import MetadataProviderPort
from .torrent_infos import TorrentInfoResolverPort

__all__ = [
    "CachePort",
    "DebridBackendPort",
    "DownloadLinkRepository",
    "IndexerGatewayPort",
    "MetadataProviderPort",
    "TorrentInfoResolverPort",
]
