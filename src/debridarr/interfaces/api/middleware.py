"""FastAPI middleware for download-resolution rate limiting."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = structlog.get_logger(__name__)

# How many limited requests between full sweeps of stale client entries.
_GC_INTERVAL = 256


def is_download_path(path: str) -> bool:
    """``/{config}/download/...`` routes resolve debrid links."""
    parts = path.strip("/").split("/")
    return len(parts) > 2 and parts[1] == "download"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiter per client IP.

    Only paths selected by ``applies_to`` are counted; every download
    resolution may add a torrent to a debrid account, so those are the
    ones worth protecting.

    Args:
        app: ASGI application.
        max_requests: Max requests per IP inside the window. 0 = unlimited.
        window_seconds: Window length.
        applies_to: Path predicate.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        app: object,
        max_requests: int = 150,
        window_seconds: float = 3600.0,
        applies_to: Callable[[str], bool] = is_download_path,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._max = max_requests
        self._window_seconds = window_seconds
        self._applies_to = applies_to
        self._clock = clock
        self._window: dict[str, deque[float]] = {}
        self._dispatch_count = 0

    def _sweep(self) -> None:
        self._dispatch_count += 1
        if self._dispatch_count < _GC_INTERVAL:
            return
        self._dispatch_count = 0
        stale = [ip for ip, dq in self._window.items() if not dq]
        for ip in stale:
            del self._window[ip]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self._max <= 0 or not self._applies_to(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self._clock()
        cutoff = now - self._window_seconds

        timestamps = self._window.setdefault(client_ip, deque())
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

        if len(timestamps) >= self._max:
            retry_after = max(1, int(timestamps[0] + self._window_seconds - now))
            log.warning(
                "rate_limit_exceeded",
                client_ip=client_ip,
                path=request.url.path,
                limit=self._max,
                window_seconds=self._window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded",
                    "retry_after_seconds": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._sweep()

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._max)
        response.headers["X-RateLimit-Remaining"] = str(
            max(0, self._max - len(timestamps))
        )
        return response
