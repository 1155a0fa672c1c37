"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response

from debridarr.infrastructure.config import AppConfig
from debridarr.interfaces.api.middleware import RateLimitMiddleware
from debridarr.interfaces.app_state import AppState
from debridarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, cache, debrid registry) are created in lifespan().
    """
    app = FastAPI(
        title="Debridarr",
        description="Stremio addon resolving streams through Jackett and debrid services",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    if config.rate_limit_max_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=config.rate_limit_max_requests,
            window_seconds=config.rate_limit_window_seconds,
        )

    from debridarr.interfaces.api.stats.router import router as stats_router
    from debridarr.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe: 200 as long as the process is running."""
        return {"status": "ok"}

    if config.static_dir is not None:
        app.mount("/static", StaticFiles(directory=config.static_dir), name="static")

    # Catch-all config segments last, after the fixed routes.
    app.include_router(stremio_router)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                # The first segment carries the user config (API keys).
                path=_redact_config_segment(request.url.path),
                status_code=response.status_code if response is not None else 500,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app


def _redact_config_segment(path: str) -> str:
    parts = path.split("/")
    if len(parts) > 2 and parts[1] not in ("", "api", "static", "healthz", "manifest.json"):
        parts[1] = "****"
    return "/".join(parts)
