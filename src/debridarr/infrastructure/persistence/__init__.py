from .download_link_cache import CacheDownloadLinkRepository, download_cache_key

__all__ = ["CacheDownloadLinkRepository", "download_cache_key"]
