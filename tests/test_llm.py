# =============================================================================
# Unit Tests — Chat-Completion Provider
# =============================================================================
#
# The AsyncOpenAI client is swapped for a mock after construction, so the
# request arguments can be inspected and no network call is made.
# =============================================================================

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from voicenotes.services.llm import (
    LLMResponse,
    OpenAICompatibleProvider,
    create_llm_provider,
)

from conftest import _run, make_settings


def _completion(content="  Lista de compras \n", model="llama-3.1-8b-instant", usage=True):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model=model,
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=4) if usage else None,
    )


def _provider(create, **kwargs) -> OpenAICompatibleProvider:
    provider = OpenAICompatibleProvider(api_key="test", **kwargs)
    mock_sdk = MagicMock()
    mock_sdk.chat.completions.create = create
    provider._client = mock_sdk
    return provider


class TestComplete:
    def test_per_call_settings_are_sent(self):
        create = AsyncMock(return_value=_completion())
        provider = _provider(create)

        _run(provider.complete(
            [{"role": "user", "content": "pan y leche"}],
            system="Genera un título",
            model="llama-3.1-8b-instant",
            temperature=0.0,
            max_tokens=20,
        ))

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "llama-3.1-8b-instant"
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 20

    def test_constructor_defaults_when_not_given(self):
        create = AsyncMock(return_value=_completion())
        provider = _provider(create, model="default-model", temperature=0.7, max_tokens=64)

        _run(provider.complete([{"role": "user", "content": "hola"}]))

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "default-model"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 64

    def test_system_prompt_sent_first(self):
        create = AsyncMock(return_value=_completion())
        provider = _provider(create)

        _run(provider.complete([{"role": "user", "content": "hola"}], system="Reglas"))

        assert create.call_args.kwargs["messages"] == [
            {"role": "system", "content": "Reglas"},
            {"role": "user", "content": "hola"},
        ]

    def test_no_system_message_without_system_prompt(self):
        create = AsyncMock(return_value=_completion())
        provider = _provider(create)

        _run(provider.complete([{"role": "user", "content": "hola"}]))

        assert create.call_args.kwargs["messages"] == [{"role": "user", "content": "hola"}]

    def test_reply_trimmed_with_usage(self):
        provider = _provider(AsyncMock(return_value=_completion()))

        response = _run(provider.complete([{"role": "user", "content": "x"}]))

        assert response == LLMResponse(
            content="Lista de compras",
            model="llama-3.1-8b-instant",
            input_tokens=12,
            output_tokens=4,
        )

    def test_missing_usage_and_content(self):
        provider = _provider(AsyncMock(return_value=_completion(content=None, usage=False)))

        response = _run(provider.complete([{"role": "user", "content": "x"}]))

        assert response.content == ""
        assert (response.input_tokens, response.output_tokens) == (0, 0)

    def test_empty_choices_raises(self):
        reply = SimpleNamespace(choices=[], model="m", usage=None)
        provider = _provider(AsyncMock(return_value=reply))

        with pytest.raises(IndexError):
            _run(provider.complete([{"role": "user", "content": "x"}]))

    def test_sdk_errors_propagate(self):
        provider = _provider(AsyncMock(side_effect=ConnectionError("reset")))

        with pytest.raises(ConnectionError):
            _run(provider.complete([{"role": "user", "content": "x"}]))


class TestConstruction:
    def test_missing_api_key(self):
        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            OpenAICompatibleProvider(api_key="")

    def test_factory_points_at_groq(self, tmp_path):
        provider = create_llm_provider(make_settings(tmp_path))

        assert str(provider._client.base_url).startswith("https://api.groq.com/openai/v1")
