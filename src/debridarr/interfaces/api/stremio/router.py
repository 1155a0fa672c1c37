"""Stremio addon API endpoints (manifest, stream, download)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from debridarr.application.use_cases.resolve_download import not_ready_url
from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.entities.stream import StreamEntry
from debridarr.domain.exceptions import (
    DebridError,
    InvalidPasskey,
    InvalidProfileToken,
    MediaNotFound,
    NoBackendConfigured,
    NoTorrentInfos,
    NotReady,
    TorrentInfosNotFound,
    UnknownDebridBackend,
    UnsupportedMediaKind,
)
from debridarr.infrastructure.config import AppConfig
from debridarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_ADDON_VERSION = "0.1.0"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

# Listing errors that simply mean "nothing to play".
_EMPTY_LISTING_ERRORS = (NoBackendConfigured, NoTorrentInfos, MediaNotFound)
_BAD_REQUEST_ERRORS = (
    UnsupportedMediaKind,
    InvalidPasskey,
    InvalidProfileToken,
    UnknownDebridBackend,
)


def build_manifest(config: AppConfig) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": config.addon.id,
        "version": _ADDON_VERSION,
        "name": config.addon.name,
        "description": config.addon.description,
        "logo": config.addon.icon,
        "types": ["movie", "series"],
        "catalogs": [],
        "resources": ["stream"],
        "idPrefixes": ["tt"],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": False,
        },
    }


def format_stream(stream: StreamEntry) -> dict[str, Any]:
    """Convert a StreamEntry to Stremio JSON format."""
    return {
        "name": stream.name,
        "title": stream.description,
        "url": stream.url,
    }


def _base_url(request: Request, config: AppConfig) -> str:
    return (config.public_url or str(request.base_url)).rstrip("/")


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def _profile(state: AppState, request: Request, token: str) -> UserProfile:
    return state.profile_factory.from_token(token, client_ip=_client_ip(request))


def _bad_request(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=400, content={"error": str(exc)}, headers=_CORS_HEADERS
    )


@router.get("/manifest.json")
async def manifest(request: Request) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=build_manifest(state.config), headers=_CORS_HEADERS)


@router.get("/{user_config}/manifest.json")
async def configured_manifest(request: Request, user_config: str) -> JSONResponse:
    """Same manifest; the config segment is echoed back by Stremio on requests."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=build_manifest(state.config), headers=_CORS_HEADERS)


@router.get("/{user_config}/stream/{content_type}/{media_id}.json")
async def stream(
    request: Request,
    user_config: str,
    content_type: str,
    media_id: str,
) -> JSONResponse:
    """List streams for a movie or an episode, cached ones first."""
    state = cast(AppState, request.app.state)

    try:
        profile = _profile(state, request, user_config)
        streams = await state.list_streams_uc.execute(
            profile,
            content_type,
            media_id,
            base_url=_base_url(request, state.config),
            profile_token=user_config,
        )
    except _EMPTY_LISTING_ERRORS as exc:
        log.info(
            "stremio_stream_empty",
            media_id=media_id,
            reason=type(exc).__name__,
            detail=str(exc),
        )
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)
    except _BAD_REQUEST_ERRORS as exc:
        log.warning("stremio_stream_rejected", media_id=media_id, error=str(exc))
        return _bad_request(exc)

    return JSONResponse(
        content={"streams": [format_stream(s) for s in streams]},
        headers=_CORS_HEADERS,
    )


@router.get(
    "/{user_config}/download/{content_type}/{media_id}/{torrent_id}/{filename:path}",
    response_model=None,
)
async def download(
    request: Request,
    user_config: str,
    content_type: str,
    media_id: str,
    torrent_id: str,
    filename: str,
) -> RedirectResponse | JSONResponse:
    """Resolve the debrid link and redirect the player to it."""
    state = cast(AppState, request.app.state)
    base_url = _base_url(request, state.config)

    try:
        profile = _profile(state, request, user_config)
        result = await state.resolve_download_uc.execute(
            profile, content_type, media_id, torrent_id, base_url=base_url
        )
    except NotReady:
        log.info("stremio_download_not_ready", media_id=media_id, torrent_id=torrent_id)
        return RedirectResponse(not_ready_url(base_url), status_code=302)
    except TorrentInfosNotFound as exc:
        return JSONResponse(
            status_code=404, content={"error": str(exc)}, headers=_CORS_HEADERS
        )
    except _BAD_REQUEST_ERRORS as exc:
        log.warning("stremio_download_rejected", media_id=media_id, error=str(exc))
        return _bad_request(exc)
    except DebridError as exc:
        log.warning(
            "stremio_download_failed",
            media_id=media_id,
            torrent_id=torrent_id,
            code=exc.code,
            exc_info=True,
        )
        return JSONResponse(
            status_code=502,
            content={"error": str(exc), "code": exc.code},
            headers=_CORS_HEADERS,
        )

    log.info(
        "stremio_download_redirect",
        media_id=media_id,
        torrent_id=torrent_id,
        fallback=result.is_fallback,
    )
    return RedirectResponse(result.url, status_code=302)
