"""Operational endpoints: indexer latency ledger and debrid backends."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from debridarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stats"])


@router.get("/stats/indexers")
async def indexer_stats(request: Request) -> JSONResponse:
    """Return the slow-indexer ledger.

    One entry per indexer seen since startup, with its slow-answer
    statistics inside the live window and whether it is still queried.
    """
    state = cast(AppState, request.app.state)
    snapshot = state.tracker.snapshot()
    return JSONResponse(content={"indexers": snapshot, "count": len(snapshot)})


@router.get("/debrids")
async def debrids(request: Request) -> JSONResponse:
    """List the debrid backends and the fields their configuration needs."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content={"debrids": state.debrid_registry.list()})
