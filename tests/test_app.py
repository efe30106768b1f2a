# =============================================================================
# API Tests — Application Factory, System and Auth Endpoints
# =============================================================================

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from voicenotes.main import create_app

from conftest import FakeLLMProvider, FakeSessionVerifier, FakeSpeechToText, as_user, make_settings


class TestSystemEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok", "version": "0.1.0", "service": "Voice Notes API",
        }

    def test_db_check(self, client):
        response = client.get("/api/db-check")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "message": "Database connection OK."}

    def test_db_check_failure(self, client):
        client.app.state.database.ping = AsyncMock(side_effect=OSError("disk gone"))

        response = client.get("/api/db-check")

        assert response.status_code == 500
        assert response.json() == {"ok": False, "message": "Database connection failed."}

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}


class TestSignOut:
    def test_signs_out_current_session(self, build_client):
        verifier = FakeSessionVerifier()
        client = build_client(session_verifier=verifier)

        response = client.post("/api/auth/sign-out", headers=as_user("alice"))

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert verifier.sign_out_calls == ["alice"]

    def test_requires_session(self, client):
        assert client.post("/api/auth/sign-out").status_code == 401


class TestCreateApp:
    def test_collaborators_on_state(self, tmp_path):
        settings = make_settings(tmp_path)
        stt = FakeSpeechToText()
        app = create_app(
            settings,
            session_verifier=FakeSessionVerifier(),
            llm_provider=FakeLLMProvider(),
            speech_to_text=stt,
        )

        assert app.state.settings is settings
        assert app.state.speech_to_text is stt
        assert app.state.enricher.default_title == "Nota de voz"

    def test_lifespan_creates_database_file(self, tmp_path):
        settings = make_settings(
            tmp_path, local_database_path=str(tmp_path / "nested" / "dev.db"),
        )
        app = create_app(
            settings,
            session_verifier=FakeSessionVerifier(),
            llm_provider=FakeLLMProvider(),
            speech_to_text=FakeSpeechToText(),
        )

        with TestClient(app):
            assert (tmp_path / "nested" / "dev.db").exists()
