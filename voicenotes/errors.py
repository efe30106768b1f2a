# =============================================================================
# Error Taxonomy — Domain Errors Mapped to HTTP Responses
# =============================================================================
#
# Every failure a request handler can surface is one of the classes below.
# Each carries the HTTP status it maps to and a PUBLIC message that is safe
# to show to the client. Internal exception text (SDK errors, SQL errors,
# tracebacks) is only ever logged, never put in `message`.
#
# The exception handlers in voicenotes.main turn these into
#   {"error": message, "details": details?}
# responses with the class' status code and headers.
# =============================================================================

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised at startup when the environment does not validate."""


class VoiceNotesError(Exception):
    """Base class for errors that become an HTTP error response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: str | list | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.headers = headers or {}
        super().__init__(self.message)


class AuthenticationError(VoiceNotesError):
    """No session, or the session service rejected it."""

    status_code = 401
    default_message = "Unauthorized"


class InputValidationError(VoiceNotesError):
    """Malformed request input (audio, note text, ids, tags)."""

    status_code = 400
    default_message = "Invalid request"


class RateLimitExceededError(VoiceNotesError):
    """The caller exhausted the quota of the current window."""

    status_code = 429
    default_message = "Too many requests. Please wait before trying again."


class OwnershipError(VoiceNotesError):
    """The note exists but belongs to another user."""

    status_code = 403
    default_message = "Access denied: you can only modify your own notes"


class NotFoundError(VoiceNotesError):
    status_code = 404
    default_message = "Note not found"


# ---------------------------------------------------------------------------
# Upstream (speech-to-text) failures — kept distinguishable for callers
# ---------------------------------------------------------------------------


class UpstreamServiceError(VoiceNotesError):
    """The provider answered with a non-2xx status."""

    status_code = 502
    default_message = "Transcription service error"

    def __init__(
        self,
        message: str | None = None,
        *,
        provider_rate_limited: bool = False,
        upstream_status: int | None = None,
    ) -> None:
        self.provider_rate_limited = provider_rate_limited
        self.upstream_status = upstream_status
        super().__init__(
            message,
            details="rate_limited" if provider_rate_limited else "service_error",
        )


class UpstreamTimeoutError(VoiceNotesError):
    status_code = 408
    default_message = "Transcription timed out"


class UpstreamEmptyResultError(VoiceNotesError):
    status_code = 422
    default_message = "Could not transcribe the audio"


class UpstreamUnavailableError(VoiceNotesError):
    """The provider could not be reached at all (DNS, refused, reset)."""

    status_code = 503
    default_message = "Could not reach the transcription service"
