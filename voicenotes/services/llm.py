# =============================================================================
# Chat-Completion Provider — OpenAI-Compatible API (Groq)
# =============================================================================
#
# Provides a common interface for chat completions used by note enrichment
# (titles, tags, idea organization). The concrete provider talks to any
# OpenAI-compatible endpoint through the OpenAI SDK; the default base URL
# is Groq's.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — AsyncOpenAI with a custom base_url
#   │   └── complete()           — system prompt as first message
#   └── create_llm_provider()    — built once per app from Settings
#
# Generation calls have no timeout of their own; they use the SDK client's
# default. Failures propagate as SDK exceptions; the enrichment layer
# decides what a failure means.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """One chat reply plus the token usage the endpoint reported."""

    content: str
    model: str             # as echoed back by the endpoint
    input_tokens: int      # 0 when the endpoint sends no usage block
    output_tokens: int


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Send one chat request and return the first reply.

        `messages` holds the user turns only. Instructions go in `system`.
        `model`, `temperature` and `max_tokens` left as None fall back to
        the provider's own defaults.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation: OpenAI-Compatible (Groq, OpenAI, ...)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Chat completions through the OpenAI SDK with a configurable base_url.

    The per-call `model`, `temperature` and `max_tokens` usually come from a
    prompt template; the constructor values are only fallbacks.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str = "llama-3.3-70b-versatile",
        temperature: float = 0.3,
        max_tokens: int = 100,
    ) -> None:
        from openai import AsyncOpenAI

        if not api_key:
            raise ValueError(
                "No API key configured for the chat-completion provider. "
                "Set GROQ_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await self._client.chat.completions.create(
            model=model or self._model,
            messages=all_messages,
            max_tokens=max_tokens if max_tokens is not None else self._max_tokens,
            temperature=(
                temperature if temperature is not None else self._temperature
            ),
        )

        # An empty `choices` list is a malformed reply: let IndexError surface
        content = (response.choices[0].message.content or "").strip()

        usage = response.usage
        return LLMResponse(
            content=content,
            model=response.model or model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    async def close(self) -> None:
        await self._client.close()


def create_llm_provider(settings) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
    )
