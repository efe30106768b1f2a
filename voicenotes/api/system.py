# =============================================================================
# System API — Liveness and Database Connectivity
# =============================================================================
#   GET /health        — process is up (no auth, no database)
#   GET /api/db-check  — one round-trip to the database
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from voicenotes.api.deps import get_settings
from voicenotes.config import Settings
from voicenotes.models.responses import DatabaseCheckResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(version=settings.app_version, service=settings.app_name)


@router.get(
    "/api/db-check",
    response_model=DatabaseCheckResponse,
    responses={500: {"model": DatabaseCheckResponse}},
)
async def database_check(request: Request):
    try:
        await request.app.state.database.ping()
    except Exception:
        logger.exception("Database check failed")
        return JSONResponse(
            status_code=500,
            content=DatabaseCheckResponse(
                ok=False, message="Database connection failed.",
            ).model_dump(),
        )
    return DatabaseCheckResponse(ok=True, message="Database connection OK.")
