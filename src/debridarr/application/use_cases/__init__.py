from .list_streams import ListStreamsUseCase
from .resolve_download import ResolveDownloadUseCase

__all__ = ["ListStreamsUseCase", "ResolveDownloadUseCase"]
