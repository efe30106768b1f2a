# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# JSON bodies use camelCase keys (`isTranscription`, `organizedContent`);
# snake_case names are accepted too.
#
# These models only check SHAPE (types). Content rules (length limits,
# tag counts, id format) are enforced by voicenotes.services.validation
# inside the handler, after authentication and rate limiting.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateNoteRequest(_CamelModel):
    """
    Request body for POST /api/notes.

    Example:
        {"content": "Comprar pan y llamar a Marta", "isTranscription": true}
    """

    content: str | None = Field(
        default=None,
        description="Note text (max 50,000 characters)",
        examples=["Comprar pan y llamar a Marta"],
    )
    is_transcription: bool = Field(
        default=False,
        description=(
            "True when the content is a raw voice transcription. "
            "Transcriptions are reorganized by the AI before titling."
        ),
    )


class UpdateNoteRequest(_CamelModel):
    """Request body for PUT /api/notes/{id}. Replaces every field."""

    title: str | None = Field(default=None, description="Max 200 characters")
    content: str | None = None
    organized_content: str | None = None
    tags: list | None = Field(
        default=None,
        description="Up to 10 tags of at most 50 characters each",
    )
