# =============================================================================
# Notes API — Create, List, Update, Delete
# =============================================================================
#
# ENDPOINTS (all authenticated, all under the `notes` rate-limit policy
# except /count which uses `general`):
#   POST   /api/notes          — validate, sanitize, enrich, store (201)
#   GET    /api/notes          — filtered, paginated list of own notes
#   GET    /api/notes/count    — {count, hasNotes}
#   PUT    /api/notes/{id}     — replace title/content/tags (owner only)
#   DELETE /api/notes/{id}     — delete (owner only)
#
# Creating a note never fails because of the AI: title, tags and idea
# organization fall back to defaults when the model is unavailable.
# =============================================================================

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from voicenotes.api.deps import (
    get_enricher,
    get_notes_repository,
    rate_limit,
)
from voicenotes.db.notes_repository import NoteFilters, NotesRepository
from voicenotes.errors import InputValidationError
from voicenotes.models.requests import CreateNoteRequest, UpdateNoteRequest
from voicenotes.models.responses import (
    DeleteNoteResponse,
    NoteCountResponse,
    NoteEnvelope,
    NoteListResponse,
    NoteResponse,
    Pagination,
)
from voicenotes.services.enrichment import NoteEnricher
from voicenotes.services.rate_limiter import EndpointClass
from voicenotes.services.sanitizer import sanitize_content
from voicenotes.services.validation import (
    ValidationResult,
    validate_note_content,
    validate_note_id,
    validate_note_tags,
    validate_note_title,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


def _require(result: ValidationResult) -> None:
    if not result.is_valid:
        raise InputValidationError(result.error)


# ---------------------------------------------------------------------------
# POST /api/notes — Create a note
# ---------------------------------------------------------------------------


@router.post(
    "/api/notes",
    response_model=NoteEnvelope,
    status_code=201,
    summary="Create a note",
    description=(
        "Store a note for the current user. Title and tags are generated by "
        "the AI; transcriptions are also reorganized into structured ideas."
    ),
    dependencies=[
        Depends(rate_limit(
            EndpointClass.NOTES,
            "Too many requests. Please wait before creating more notes.",
        )),
    ],
)
async def create_note(
    http_request: Request,
    request: CreateNoteRequest,
    enricher: NoteEnricher = Depends(get_enricher),
    repository: NotesRepository = Depends(get_notes_repository),
) -> NoteEnvelope:
    user = http_request.state.user

    _require(validate_note_content(request.content))
    content = sanitize_content(request.content)
    # Markup-only input sanitizes down to nothing
    _require(validate_note_content(content))

    organized_content: str | None = None
    enrichment_source = content
    if request.is_transcription:
        organized = await enricher.organize_ideas(content)
        if not organized.fallback_used:
            organized_content = sanitize_content(organized.value) or None
            enrichment_source = organized_content or content

    generated = await enricher.generate_title_and_tags(enrichment_source)

    note = await repository.create(
        user_id=user.id,
        title=generated.title.value,
        content=content,
        tags=generated.tags.value,
        organized_content=organized_content,
    )

    logger.info(
        "Note saved: id=%s transcription=%s title_fallback=%s tags_fallback=%s",
        note.id,
        request.is_transcription,
        generated.title.fallback_used,
        generated.tags.fallback_used,
    )
    return NoteEnvelope(note=NoteResponse.from_note(note))


# ---------------------------------------------------------------------------
# GET /api/notes — List / search notes
# ---------------------------------------------------------------------------


@router.get(
    "/api/notes",
    response_model=NoteListResponse,
    summary="List the current user's notes",
    description=(
        "Newest first. `search` matches title or content, `tag` an exact "
        "tag, `startDate`/`endDate` (YYYY-MM-DD, inclusive) the creation day."
    ),
    dependencies=[
        Depends(rate_limit(
            EndpointClass.NOTES,
            "Too many requests. Please wait before fetching notes.",
        )),
    ],
)
async def list_notes(
    http_request: Request,
    search: str | None = Query(default=None, max_length=200),
    tag: str | None = Query(default=None, max_length=50),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repository: NotesRepository = Depends(get_notes_repository),
) -> NoteListResponse:
    user = http_request.state.user
    filters = NoteFilters(
        search=search or None,
        tag=tag or None,
        start_date=start_date,
        end_date=end_date,
    )

    page = await repository.list_notes(user.id, filters, limit=limit, offset=offset)

    return NoteListResponse(
        notes=[NoteResponse.from_note(note) for note in page.notes],
        pagination=Pagination(
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            has_more=page.has_more,
        ),
    )


# ---------------------------------------------------------------------------
# GET /api/notes/count
# ---------------------------------------------------------------------------


@router.get(
    "/api/notes/count",
    response_model=NoteCountResponse,
    summary="Count the current user's notes",
    dependencies=[Depends(rate_limit(EndpointClass.GENERAL))],
)
async def count_notes(
    http_request: Request,
    repository: NotesRepository = Depends(get_notes_repository),
) -> NoteCountResponse:
    count = await repository.count(http_request.state.user.id)
    return NoteCountResponse(count=count, has_notes=count > 0)


# ---------------------------------------------------------------------------
# PUT /api/notes/{note_id} — Update a note
# ---------------------------------------------------------------------------


@router.put(
    "/api/notes/{note_id}",
    response_model=NoteEnvelope,
    summary="Update a note",
    dependencies=[
        Depends(rate_limit(
            EndpointClass.NOTES,
            "Too many requests. Please wait before updating notes.",
        )),
    ],
)
async def update_note(
    note_id: str,
    http_request: Request,
    request: UpdateNoteRequest,
    repository: NotesRepository = Depends(get_notes_repository),
) -> NoteEnvelope:
    user = http_request.state.user

    _require(validate_note_id(note_id))
    _require(validate_note_title(request.title))
    _require(validate_note_content(request.content))
    _require(validate_note_tags(request.tags))

    title = sanitize_content(request.title.strip())
    content = sanitize_content(request.content)
    _require(validate_note_title(title))
    _require(validate_note_content(content))

    tags = [sanitize_content(tag.strip()) for tag in request.tags]
    tags = [tag for tag in tags if tag]
    organized_content = (
        sanitize_content(request.organized_content) or None
        if request.organized_content is not None
        else None
    )

    note = await repository.update(
        note_id,
        user.id,
        title=title,
        content=content,
        tags=tags,
        organized_content=organized_content,
    )
    return NoteEnvelope(note=NoteResponse.from_note(note))


# ---------------------------------------------------------------------------
# DELETE /api/notes/{note_id}
# ---------------------------------------------------------------------------


@router.delete(
    "/api/notes/{note_id}",
    response_model=DeleteNoteResponse,
    summary="Delete a note",
    dependencies=[
        Depends(rate_limit(
            EndpointClass.NOTES,
            "Too many requests. Please wait before deleting notes.",
        )),
    ],
)
async def delete_note(
    note_id: str,
    http_request: Request,
    repository: NotesRepository = Depends(get_notes_repository),
) -> DeleteNoteResponse:
    _require(validate_note_id(note_id))
    await repository.delete(note_id, http_request.state.user.id)
    return DeleteNoteResponse()
