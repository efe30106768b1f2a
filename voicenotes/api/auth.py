# =============================================================================
# Auth API — Sign-Out Passthrough
# =============================================================================
#
# POST /api/auth/sign-out forwards the caller's session cookie to the
# external auth service and relays the status it answers with. Every other
# auth operation (sign-up, sign-in, session refresh) is served by that
# service directly.
# =============================================================================

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Request

from voicenotes.api.deps import get_current_user
from voicenotes.errors import UpstreamUnavailableError
from voicenotes.services.auth import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/api/auth/sign-out")
async def sign_out(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    try:
        status = await request.app.state.session_verifier.sign_out(request.headers)
    except httpx.HTTPError as e:
        logger.error("Sign-out request to auth service failed: %s", e)
        raise UpstreamUnavailableError("Could not reach the authentication service") from e

    logger.info("User %s signed out (auth service status %d)", user.id, status)
    return {"success": 200 <= status < 300}
