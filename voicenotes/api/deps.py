# =============================================================================
# Request Dependencies — Authentication, Rate Limiting, Collaborators
# =============================================================================
#
# Every protected endpoint runs, in this order:
#
#   1. get_current_user()   — session lookup → AuthenticatedUser or 401
#   2. rate_limit(endpoint) — fixed-window check → 429 with headers
#   3. handler body         — validation, sanitizing, AI calls, storage
#
# Rate limiting depends on the authenticated user, so FastAPI cannot run
# it before step 1, and both run before any handler code touches the
# upload, the database or an AI provider.
#
# Collaborators (settings, limiter, AI clients, database) are created once
# by create_app() and read from `request.app.state`; tests swap them by
# passing fakes to create_app().
# =============================================================================

from __future__ import annotations

import logging

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from voicenotes.config import Settings
from voicenotes.db.engine import get_async_session
from voicenotes.db.notes_repository import NotesRepository
from voicenotes.errors import AuthenticationError, RateLimitExceededError
from voicenotes.services.auth import AuthenticatedUser
from voicenotes.services.enrichment import NoteEnricher
from voicenotes.services.rate_limiter import EndpointClass, RateLimitResult
from voicenotes.services.transcription import SpeechToText

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_enricher(request: Request) -> NoteEnricher:
    return request.app.state.enricher


def get_speech_to_text(request: Request) -> SpeechToText:
    return request.app.state.speech_to_text


def get_notes_repository(
    session: AsyncSession = Depends(get_async_session),
) -> NotesRepository:
    return NotesRepository(session)


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    Resolve the caller through the session service.

    Raises:
        AuthenticationError (401): no session, or the service rejected it.
    """
    verifier = request.app.state.session_verifier
    user = await verifier.get_session(request.headers)
    if user is None:
        logger.info("Unauthenticated request: %s %s", request.method, request.url.path)
        raise AuthenticationError()

    request.state.user = user
    return user


def rate_limit(endpoint: EndpointClass, message: str | None = None):
    """
    Build a dependency enforcing `endpoint`'s policy for the current user.

    The X-RateLimit-* headers are attached to the successful response and
    remembered on `request.state` so error responses carry them too.
    """

    async def dependency(
        request: Request,
        response: Response,
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> RateLimitResult:
        limiter = request.app.state.rate_limiter
        result = await limiter.check_endpoint(user.id, endpoint)
        headers = result.headers()
        request.state.rate_limit_headers = headers

        if not result.allowed:
            raise RateLimitExceededError(message, headers=headers)

        response.headers.update(headers)
        return result

    dependency.__name__ = f"rate_limit_{endpoint.value}"
    return dependency
