# =============================================================================
# Speech-to-Text Client — Transcription with Timeout and Error Mapping
# =============================================================================
#
# Uploads one audio clip to the provider's transcription endpoint
# (OpenAI-compatible `audio/transcriptions`, Groq by default) with fixed
# parameters: model, language, response_format=json.
#
# The whole call is bounded by `timeout_seconds` (30 s by default) and the
# SDK's own retries are disabled, so a slow provider costs the caller at
# most one timeout.
#
# FAILURE MAPPING (each one a distinct error the caller can tell apart):
#   provider answered non-2xx   → UpstreamServiceError (502), with
#                                 provider_rate_limited=True for 429
#   timeout / cancelled request → UpstreamTimeoutError (408)
#   provider unreachable        → UpstreamUnavailableError (503)
#   empty transcript            → UpstreamEmptyResultError (422)
#
# Unlike enrichment, there is nothing to fall back to here: every failure
# propagates to the request handler.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import openai

from voicenotes.errors import (
    UpstreamEmptyResultError,
    UpstreamServiceError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


class SpeechToText(Protocol):
    async def transcribe(
        self, audio: bytes, filename: str, content_type: str | None,
    ) -> str:
        """Return the trimmed transcript, or raise an Upstream* error."""
        ...


class SpeechToTextClient:
    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str = "whisper-large-v3",
        language: str = "es",
        timeout_seconds: float = 30.0,
    ) -> None:
        client_kwargs: dict = {
            "api_key": api_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = model
        self._language = language
        self._timeout = timeout_seconds

        logger.info(
            "Initialized SpeechToTextClient (model=%s, language=%s, timeout=%.0fs)",
            model, language, timeout_seconds,
        )

    async def transcribe(
        self, audio: bytes, filename: str, content_type: str | None,
    ) -> str:
        try:
            async with asyncio.timeout(self._timeout):
                result = await self._client.audio.transcriptions.create(
                    file=(filename, audio, content_type or "application/octet-stream"),
                    model=self._model,
                    language=self._language,
                    response_format="json",
                )
        except (TimeoutError, openai.APITimeoutError) as e:
            logger.error("Transcription timed out after %.0fs", self._timeout)
            raise UpstreamTimeoutError() from e
        except openai.APIStatusError as e:
            logger.error(
                "Transcription provider returned %d: %s", e.status_code, e.message,
            )
            raise UpstreamServiceError(
                provider_rate_limited=e.status_code == 429,
                upstream_status=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            logger.error("Could not reach transcription provider: %s", e)
            raise UpstreamUnavailableError() from e

        text = (getattr(result, "text", None) or "").strip()
        if not text:
            logger.warning(
                "Transcription provider returned no text for %s (%d bytes)",
                filename, len(audio),
            )
            raise UpstreamEmptyResultError()

        logger.info(
            "Transcribed %s (%d bytes) → %d characters",
            filename, len(audio), len(text),
        )
        return text

    async def close(self) -> None:
        await self._client.close()


def create_speech_to_text(settings) -> SpeechToTextClient:
    return SpeechToTextClient(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        model=settings.transcription_model,
        language=settings.transcription_language,
        timeout_seconds=settings.transcription_timeout_seconds,
    )
