# =============================================================================
# Shared Test Fixtures — Settings, Fakes, TestClient
# =============================================================================
#
# The app is built with create_app() and fake collaborators, so no test
# needs a network, real API keys, Redis or the auth service:
#
#   FakeSessionVerifier  — the `X-Test-User` header names the caller
#   FakeLLMProvider      — canned replies per prompt template name
#   FakeSpeechToText     — fixed transcript or a fixed error
#
# Each test gets a fresh SQLite file under tmp_path and a fresh in-memory
# rate limiter.
# =============================================================================

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from contextlib import ExitStack
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from voicenotes.config import DEFAULT_PROMPTS_DIR, Settings
from voicenotes.main import create_app
from voicenotes.services.auth import AuthenticatedUser
from voicenotes.services.enrichment import PROMPT_VARIABLES
from voicenotes.services.llm import LLMResponse
from voicenotes.services.prompts import PromptLibrary, render_prompt

TEST_AUTH_SECRET = "test-secret-that-is-long-enough-0123456789"


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "_env_file": None,
        "environment": "test",
        "auth_secret": TEST_AUTH_SECRET,
        "groq_api_key": "test",
        "use_local_db": True,
        "local_database_path": str(tmp_path / "notes.db"),
        "rate_limit_backend": "memory",
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSessionVerifier:
    """Resolves the caller from the `X-Test-User` header."""

    def __init__(self) -> None:
        self.sign_out_calls: list[str | None] = []

    async def get_session(self, headers: Mapping[str, str]) -> AuthenticatedUser | None:
        user_id = headers.get("x-test-user")
        if not user_id:
            return None
        return AuthenticatedUser(id=user_id, email=f"{user_id}@example.com")

    async def sign_out(self, headers: Mapping[str, str]) -> int:
        self.sign_out_calls.append(headers.get("x-test-user"))
        return 200


class FakeLLMProvider:
    """
    Answers each completion with the reply registered for the prompt
    template whose rendered system prompt was sent. A reply that is an
    Exception instance is raised instead.
    """

    def __init__(
        self,
        replies: Mapping[str, str | Exception] | None = None,
        prompts: PromptLibrary | None = None,
    ) -> None:
        self.replies = dict(replies or {})
        self.prompts = prompts or PromptLibrary.load(DEFAULT_PROMPTS_DIR)
        self.calls: list[dict] = []

    def _prompt_name(self, system: str | None) -> str | None:
        for name in self.prompts.names:
            template = self.prompts.get(name).system_prompt
            if render_prompt(template, PROMPT_VARIABLES) == system:
                return name
        return None

    async def complete(
        self,
        messages,
        system=None,
        model=None,
        temperature=None,
        max_tokens=None,
    ) -> LLMResponse:
        name = self._prompt_name(system)
        self.calls.append({
            "prompt": name,
            "system": system,
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })

        reply = self.replies.get(name, "")
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply, model=model or "fake", input_tokens=0, output_tokens=0,
        )


class FakeSpeechToText:
    def __init__(self, text: str = "hola", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[tuple[str, str | None, int]] = []

    async def transcribe(self, audio: bytes, filename: str, content_type: str | None) -> str:
        self.calls.append((filename, content_type, len(audio)))
        if self.error is not None:
            raise self.error
        return self.text


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def llm():
    return FakeLLMProvider({
        "title-generation": "My Title",
        "tags-generation": "a, b",
        "idea-organization": "## Ideas\n- comprar pan",
    })


@pytest.fixture
def speech_to_text():
    return FakeSpeechToText()


@pytest.fixture
def build_client(tmp_path, llm, speech_to_text):
    """
    Factory for a started TestClient. Settings overrides and replacement
    fakes are keyword arguments; clients are closed at teardown.
    """
    stack = ExitStack()

    def _build(
        *,
        llm_provider=None,
        stt=None,
        session_verifier=None,
        **setting_overrides,
    ) -> TestClient:
        app = create_app(
            make_settings(tmp_path, **setting_overrides),
            session_verifier=session_verifier or FakeSessionVerifier(),
            llm_provider=llm_provider or llm,
            speech_to_text=stt or speech_to_text,
        )
        return stack.enter_context(TestClient(app))

    with stack:
        yield _build


@pytest.fixture
def client(build_client):
    return build_client()


def as_user(user_id: str) -> dict[str, str]:
    return {"X-Test-User": user_id}
