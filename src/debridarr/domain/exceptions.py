"""Stream resolution exceptions."""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for all stream resolution errors."""


class NoBackendConfigured(ResolutionError):
    """Raised when Jackett exposes no indexer at all."""


class NoTorrentInfos(ResolutionError):
    """Raised when no candidate survived torrent info resolution."""


class MediaNotFound(ResolutionError):
    """Raised when the metadata provider does not know the requested id."""


class UnsupportedMediaKind(ResolutionError):
    """Raised for media types other than movie and series."""


class UnknownDebridBackend(ResolutionError):
    """Raised when the user selected a debrid id that is not registered."""


class InvalidPasskey(ResolutionError):
    """Raised when the user passkey does not match the configured pattern."""


class TorrentInfosNotFound(ResolutionError):
    """Raised when a torrent id is unknown or its cache entry expired."""


class DebridError(ResolutionError):
    """Generic debrid backend failure.

    Args:
        message: Human readable description.
        code: Backend error code (e.g. ``"FORBIDDEN"``), if any.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class NotReady(DebridError):
    """Raised when the debrid backend is still downloading the torrent."""

    def __init__(self, message: str = "Torrent not ready") -> None:
        super().__init__(message, code="NOT_READY")


class ExpiredCredential(DebridError):
    """Raised when the debrid API key is expired or revoked."""

    def __init__(self, message: str = "Expired Debrid API Key") -> None:
        super().__init__(message, code="EXPIRED_API_KEY")


class InvalidProfileToken(ResolutionError):
    """Raised when the user configuration token in the URL cannot be decoded."""
