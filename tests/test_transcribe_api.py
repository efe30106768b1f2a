# =============================================================================
# API Tests — POST /api/transcribe
# =============================================================================
#
# The speech-to-text provider is FakeSpeechToText; each upstream failure
# class must reach the client as its own status code.
# =============================================================================

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from starlette.datastructures import UploadFile

from voicenotes.errors import (
    UpstreamEmptyResultError,
    UpstreamServiceError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

from conftest import FakeSpeechToText, as_user

ALICE = as_user("alice")
WAV = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 32


def _upload(client, data=WAV, content_type="audio/wav", filename="clip.wav", headers=ALICE):
    return client.post(
        "/api/transcribe",
        files={"audio": (filename, data, content_type)},
        headers=headers,
    )


class TestTranscribe:
    def test_returns_transcript(self, client, speech_to_text):
        response = _upload(client)

        assert response.status_code == 200
        assert response.json() == {"transcription": "hola", "success": True}
        assert speech_to_text.calls == [("clip.wav", "audio/wav", len(WAV))]
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"

    def test_webm_with_codecs(self, client):
        response = _upload(client, content_type="audio/webm;codecs=opus", filename="r.webm")
        assert response.status_code == 200

    def test_unauthenticated(self, client, speech_to_text):
        response = _upload(client, headers={})
        assert response.status_code == 401
        assert speech_to_text.calls == []

    def test_sixth_request_in_window_is_limited(self, client, speech_to_text):
        for _ in range(5):
            assert _upload(client).status_code == 200

        response = _upload(client)

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert len(speech_to_text.calls) == 5


class TestValidation:
    def test_not_multipart(self, client):
        response = client.post(
            "/api/transcribe", content=WAV,
            headers={**ALICE, "Content-Type": "audio/wav"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Content-Type must be multipart/form-data"}

    def test_missing_audio_field(self, client, speech_to_text):
        response = client.post(
            "/api/transcribe",
            files={"recording": ("clip.wav", WAV, "audio/wav")},
            headers=ALICE,
        )
        assert response.status_code == 400
        assert speech_to_text.calls == []

    def test_empty_audio(self, client):
        response = _upload(client, data=b"")
        assert response.status_code == 400
        assert response.json() == {"error": "File is empty"}

    def test_unsupported_type(self, client, speech_to_text):
        response = _upload(client, content_type="text/plain", filename="notes.txt")
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid audio type: text/plain")
        assert speech_to_text.calls == []

    def test_rejected_from_upload_metadata_without_reading(
        self, client, speech_to_text, monkeypatch,
    ):
        read = AsyncMock()
        monkeypatch.setattr(UploadFile, "read", read)

        response = _upload(client, content_type="video/mp4", filename="clip.mp4")

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid audio type: video/mp4")
        read.assert_not_called()
        assert speech_to_text.calls == []

    def test_too_large(self, build_client, speech_to_text):
        client = build_client(max_audio_file_size=1)
        response = _upload(client, data=b"\x00" * (1024 * 1024 + 1))

        assert response.status_code == 400
        assert response.json() == {"error": "File too large. Maximum allowed: 1MB"}
        assert speech_to_text.calls == []


class TestUpstreamFailures:
    @pytest.mark.parametrize(
        ("error", "status", "body"),
        [
            (UpstreamTimeoutError(), 408, {"error": "Transcription timed out"}),
            (UpstreamEmptyResultError(), 422, {"error": "Could not transcribe the audio"}),
            (
                UpstreamServiceError(upstream_status=500),
                502,
                {"error": "Transcription service error", "details": "service_error"},
            ),
            (
                UpstreamServiceError(provider_rate_limited=True, upstream_status=429),
                502,
                {"error": "Transcription service error", "details": "rate_limited"},
            ),
            (
                UpstreamUnavailableError(),
                503,
                {"error": "Could not reach the transcription service"},
            ),
        ],
    )
    def test_error_mapping(self, build_client, error, status, body):
        client = build_client(stt=FakeSpeechToText(error=error))

        response = _upload(client)

        assert response.status_code == status
        assert response.json() == body
        # Rate-limit headers are attached to error responses too
        assert response.headers["X-RateLimit-Limit"] == "5"
