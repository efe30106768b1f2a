# =============================================================================
# Note Enrichment — AI Titles, Tags and Idea Organization
# =============================================================================
#
# Each enrichment is one chat completion driven by a prompt template
# (system prompt + model/temperature/max_tokens + content_limit). The user
# content is cut to the template's content_limit before sending.
#
# Enrichment is best-effort. Any failure (SDK error, network error,
# malformed or blank reply) yields an EnrichmentResult with
# `fallback_used=True` and a fixed fallback value:
#
#   generate_title   → settings.default_note_title ("Nota de voz")
#   generate_tags    → []
#   organize_ideas   → the original text
#
# so note creation never fails because of the model. The error is logged
# and kept on the result for callers that care.
#
# FLOW for a saved note:
#   organize_ideas (transcriptions only)
#          │
#   generate_title_and_tags  ─┬─ generate_title ─┐
#                             └─ generate_tags  ─┴─ asyncio.gather
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from voicenotes.services.llm import LLMProvider
from voicenotes.services.prompts import PromptLibrary, PromptTemplate, render_prompt
from voicenotes.services.sanitizer import sanitize_content
from voicenotes.services.validation import MAX_TAG_LENGTH, MAX_TAGS, MAX_TITLE_LENGTH

logger = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_PROMPT = "title-generation"
TAGS_PROMPT = "tags-generation"
ORGANIZE_PROMPT = "idea-organization"

# Values available to templates as {{name}} placeholders
PROMPT_VARIABLES = {
    "max_tags": str(MAX_TAGS),
    "max_tag_length": str(MAX_TAG_LENGTH),
    "max_title_length": str(MAX_TITLE_LENGTH),
}


@dataclass(frozen=True)
class EnrichmentResult(Generic[T]):
    """A generated value, or the fallback that replaced it."""

    value: T
    fallback_used: bool = False
    error: str | None = None

    @classmethod
    def fallback(cls, value: T, error: str) -> EnrichmentResult[T]:
        return cls(value=value, fallback_used=True, error=error)


@dataclass(frozen=True)
class TitleAndTags:
    title: EnrichmentResult[str]
    tags: EnrichmentResult[list[str]]


def parse_tags(reply: str) -> list[str]:
    """Split a comma-separated reply into at most 10 clean tags."""
    tags: list[str] = []
    for raw in reply.split(","):
        tag = sanitize_content(raw.strip())[:MAX_TAG_LENGTH].strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


class NoteEnricher:
    def __init__(
        self,
        llm: LLMProvider,
        prompts: PromptLibrary,
        default_title: str = "Nota de voz",
    ) -> None:
        self._llm = llm
        self._prompts = prompts
        self.default_title = default_title

    async def _run_prompt(self, prompt: PromptTemplate, content: str) -> str:
        response = await self._llm.complete(
            messages=[{"role": "user", "content": prompt.limit(content)}],
            system=render_prompt(prompt.system_prompt, PROMPT_VARIABLES),
            model=prompt.config.model,
            temperature=prompt.config.temperature,
            max_tokens=prompt.config.max_tokens,
        )
        return response.content

    async def generate_title(self, content: str) -> EnrichmentResult[str]:
        try:
            reply = await self._run_prompt(self._prompts.get(TITLE_PROMPT), content)
        except Exception as e:
            logger.warning("Title generation failed, using default title: %s", e)
            return EnrichmentResult.fallback(self.default_title, str(e))

        title = sanitize_content(reply)[:MAX_TITLE_LENGTH].strip()
        if not title:
            logger.warning("Title generation returned no text, using default title")
            return EnrichmentResult.fallback(self.default_title, "empty reply")
        return EnrichmentResult(title)

    async def generate_tags(self, content: str) -> EnrichmentResult[list[str]]:
        try:
            reply = await self._run_prompt(self._prompts.get(TAGS_PROMPT), content)
        except Exception as e:
            logger.warning("Tag generation failed, saving note without tags: %s", e)
            return EnrichmentResult.fallback([], str(e))
        return EnrichmentResult(parse_tags(reply))

    async def organize_ideas(self, transcription: str) -> EnrichmentResult[str]:
        try:
            reply = await self._run_prompt(
                self._prompts.get(ORGANIZE_PROMPT), transcription,
            )
        except Exception as e:
            logger.warning("Idea organization failed, keeping original text: %s", e)
            return EnrichmentResult.fallback(transcription, str(e))

        if not reply:
            return EnrichmentResult.fallback(transcription, "empty reply")
        return EnrichmentResult(reply)

    async def generate_title_and_tags(self, content: str) -> TitleAndTags:
        title, tags = await asyncio.gather(
            self.generate_title(content),
            self.generate_tags(content),
        )
        return TitleAndTags(title=title, tags=tags)
