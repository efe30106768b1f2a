# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# Serialized with camelCase keys (FastAPI uses aliases by default), e.g.
#   {"success": true, "note": {"id": ..., "organizedContent": ...,
#                              "createdAt": ..., "updatedAt": ...}}
#
# `NoteResponse.from_note()` maps the ORM row (tags stored as JSON text)
# to the public shape (tags as a list). `user_id` is never exposed.
# =============================================================================

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from voicenotes.db.models import Note


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class DatabaseCheckResponse(BaseModel):
    ok: bool
    message: str


class TranscriptionResponse(BaseModel):
    transcription: str
    success: bool = True


class NoteResponse(_CamelModel):
    id: str
    title: str
    content: str
    organized_content: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_note(cls, note: Note) -> NoteResponse:
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            organized_content=note.organized_content,
            tags=note.tag_list,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


class NoteEnvelope(BaseModel):
    """Response for POST /api/notes and PUT /api/notes/{id}."""

    success: bool = True
    note: NoteResponse


class Pagination(_CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class NoteListResponse(BaseModel):
    """Response for GET /api/notes."""

    success: bool = True
    notes: list[NoteResponse]
    pagination: Pagination


class NoteCountResponse(_CamelModel):
    count: int
    has_notes: bool


class DeleteNoteResponse(BaseModel):
    success: bool = True
    message: str = "Note deleted successfully"
