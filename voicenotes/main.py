# =============================================================================
# Application Factory — FastAPI App, Lifespan, Error Handlers
# =============================================================================
#
# `create_app(settings)` wires every collaborator exactly once and keeps it
# on `app.state`:
#
#   settings          Settings (validated environment)
#   database          Database (engine + session factory)
#   rate_limiter      RateLimiter (memory or redis store)
#   session_verifier  SessionVerifier (external auth service)
#   speech_to_text    SpeechToText (transcription provider)
#   enricher          NoteEnricher (chat-completion provider + prompts)
#
# Any collaborator can be passed in instead (tests pass fakes); the app
# only closes the clients it created itself.
#
# LIFESPAN:
#   startup  → create tables, start the rate-limiter sweeper task
#   shutdown → cancel the sweeper, close HTTP clients, dispose the engine
#
# RUN:
#   voicenotes                                  (console script)
#   uvicorn voicenotes.main:create_app --factory
# =============================================================================

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voicenotes.api import auth, notes, system, transcribe
from voicenotes.config import Settings, load_settings
from voicenotes.db.engine import Database
from voicenotes.errors import VoiceNotesError
from voicenotes.services.auth import SessionVerifier, create_session_verifier
from voicenotes.services.enrichment import NoteEnricher
from voicenotes.services.llm import LLMProvider, create_llm_provider
from voicenotes.services.prompts import PromptLibrary
from voicenotes.services.rate_limiter import RateLimiter, create_rate_limiter
from voicenotes.services.transcription import SpeechToText, create_speech_to_text

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ---------------------------------------------------------------------------
# Error Handlers
# ---------------------------------------------------------------------------


def _error_response(
    request: Request,
    status_code: int,
    body: dict,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    merged = dict(getattr(request.state, "rate_limit_headers", None) or {})
    merged.update(headers or {})
    return JSONResponse(status_code=status_code, content=body, headers=merged)


async def _handle_voicenotes_error(request: Request, exc: VoiceNotesError) -> JSONResponse:
    if exc.status_code >= 500 or exc.status_code in (408, 422):
        logger.error(
            "%s %s failed: %s (%d)",
            request.method, request.url.path, type(exc).__name__, exc.status_code,
        )
    else:
        logger.info(
            "%s %s rejected: %s (%d) %s",
            request.method, request.url.path, type(exc).__name__,
            exc.status_code, exc.message,
        )

    body: dict = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return _error_response(request, exc.status_code, body, exc.headers)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    logger.info(
        "%s %s rejected: invalid request %s", request.method, request.url.path, details,
    )
    return _error_response(
        request, 400, {"error": "Invalid request", "details": details},
    )


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    return _error_response(
        request, exc.status_code, {"error": exc.detail}, exc.headers,
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return _error_response(request, 500, {"error": "Internal server error"})


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    rate_limiter: RateLimiter | None = None,
    session_verifier: SessionVerifier | None = None,
    speech_to_text: SpeechToText | None = None,
    llm_provider: LLMProvider | None = None,
    prompts: PromptLibrary | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    configure_logging(settings)

    owned: list = []

    if database is None:
        database = Database.from_settings(settings)
    if rate_limiter is None:
        rate_limiter = create_rate_limiter(settings)
        if hasattr(rate_limiter.store, "close"):
            owned.append(rate_limiter.store)
    if session_verifier is None:
        session_verifier = create_session_verifier(settings)
        owned.append(session_verifier)
    if speech_to_text is None:
        speech_to_text = create_speech_to_text(settings)
        owned.append(speech_to_text)
    if llm_provider is None:
        llm_provider = create_llm_provider(settings)
        owned.append(llm_provider)
    if prompts is None:
        prompts = PromptLibrary.load(settings.prompts_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.init_schema()
        sweeper = asyncio.create_task(
            rate_limiter.run_sweeper(settings.rate_limit_sweep_interval_seconds),
        )
        logger.info("%s %s started", settings.app_name, settings.app_version)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            for client in owned:
                await client.close()
            await database.dispose()
            logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Voice notes: transcribe short recordings, enrich them with AI "
            "titles and tags, and keep them as searchable notes."
        ),
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.rate_limiter = rate_limiter
    app.state.session_verifier = session_verifier
    app.state.speech_to_text = speech_to_text
    app.state.enricher = NoteEnricher(
        llm_provider, prompts, default_title=settings.default_note_title,
    )

    app.add_exception_handler(VoiceNotesError, _handle_voicenotes_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(Exception, _handle_unexpected)

    app.include_router(system.router)
    app.include_router(auth.router)
    app.include_router(transcribe.router)
    app.include_router(notes.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
