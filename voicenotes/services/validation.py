# =============================================================================
# Input Validators — Pure Functions
# =============================================================================
#
# Every validator returns a result object instead of raising, so handlers
# decide how to respond. None of them touch I/O or global state.
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass, field

MAX_NOTE_CONTENT_LENGTH = 50_000
MAX_TITLE_LENGTH = 200
MAX_TAGS = 10
MAX_TAG_LENGTH = 50

# Base MIME types; codec parameters (";codecs=opus") are stripped first.
ALLOWED_AUDIO_TYPES = frozenset({
    "audio/webm",
    "audio/ogg",
    "audio/mp4",
    "audio/mpeg",
    "audio/wav",
    "audio/x-wav",
    "audio/mp3",
})

_NOTE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class AudioValidationResult:
    is_valid: bool
    error: str | None = None
    file_info: dict = field(default_factory=dict)


def _base_mime_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _check_audio(
    noun: str,
    size: int,
    content_type: str | None,
    max_size_bytes: int,
) -> AudioValidationResult:
    if size > max_size_bytes:
        max_mb = max_size_bytes / (1024 * 1024)
        return AudioValidationResult(
            False,
            f"{noun} too large. Maximum allowed: {max_mb:g}MB",
        )
    if size == 0:
        return AudioValidationResult(False, f"{noun} is empty")

    if _base_mime_type(content_type) not in ALLOWED_AUDIO_TYPES:
        return AudioValidationResult(
            False,
            f"Invalid audio type: {content_type or 'unknown'}. "
            f"Allowed types: {', '.join(sorted(ALLOWED_AUDIO_TYPES))}",
        )

    return AudioValidationResult(
        True, file_info={"type": content_type, "size": size},
    )


def validate_audio_blob(
    data: bytes | None,
    content_type: str | None,
    max_size_bytes: int,
) -> AudioValidationResult:
    """Validate raw audio bytes taken from a multipart form."""
    if data is None:
        return AudioValidationResult(False, "No audio data provided")
    return _check_audio("Audio data", len(data), content_type, max_size_bytes)


def validate_audio_file(
    filename: str | None,
    content_type: str | None,
    size: int | None,
    max_size_bytes: int,
) -> AudioValidationResult:
    """Validate an uploaded audio file from its metadata."""
    if size is None:
        return AudioValidationResult(False, "No file provided")
    result = _check_audio("File", size, content_type, max_size_bytes)
    if result.is_valid and filename:
        return AudioValidationResult(
            True, file_info={**result.file_info, "filename": filename},
        )
    return result


def validate_note_content(content: object) -> ValidationResult:
    if not content or not isinstance(content, str):
        return ValidationResult(False, "Content is required")

    trimmed = content.strip()
    if not trimmed:
        return ValidationResult(False, "Content cannot be empty")
    if len(trimmed) > MAX_NOTE_CONTENT_LENGTH:
        return ValidationResult(
            False, "Content too long. Maximum 50,000 characters allowed.",
        )
    return ValidationResult(True)


def validate_note_id(note_id: object) -> ValidationResult:
    if not note_id or not isinstance(note_id, str):
        return ValidationResult(False, "Invalid note ID")
    if not _NOTE_ID_RE.match(note_id):
        return ValidationResult(False, "Invalid note ID format")
    return ValidationResult(True)


def validate_note_title(title: object) -> ValidationResult:
    if not isinstance(title, str) or not title.strip():
        return ValidationResult(False, "Title is required")
    if len(title.strip()) > MAX_TITLE_LENGTH:
        return ValidationResult(
            False, "Title too long. Maximum 200 characters allowed.",
        )
    return ValidationResult(True)


def validate_note_tags(tags: object) -> ValidationResult:
    if not isinstance(tags, list):
        return ValidationResult(False, "Tags must be an array")
    if len(tags) > MAX_TAGS:
        return ValidationResult(False, "Too many tags. Maximum 10 tags allowed.")
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            return ValidationResult(False, "All tags must be non-empty strings")
        if len(tag) > MAX_TAG_LENGTH:
            return ValidationResult(
                False, "Tag too long. Maximum 50 characters per tag.",
            )
    return ValidationResult(True)
