# =============================================================================
# Prompt Templates — Markdown Files with YAML Frontmatter
# =============================================================================
#
# Each template lives in `<prompts_dir>/<name>.md`:
#
#   ---
#   model: llama-3.3-70b-versatile
#   max_tokens: 20
#   temperature: 0.3
#   content_limit: 1000
#   description: Short note title
#   ---
#   <system prompt text>
#
# `PromptLibrary.load()` reads every template once at startup. Templates
# are frozen for the lifetime of the process.
# =============================================================================

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_MAX_TOKENS = 100
DEFAULT_TEMPERATURE = 0.3
DEFAULT_CONTENT_LIMIT = 1000

_FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---\r?\n(.*)$", re.DOTALL)


class PromptError(Exception):
    """A template is missing or cannot be parsed."""


@dataclass(frozen=True)
class PromptConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    content_limit: int = DEFAULT_CONTENT_LIMIT
    description: str | None = None


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    system_prompt: str
    config: PromptConfig

    def limit(self, content: str) -> str:
        """Cut user content to the template's character limit."""
        return content[: self.config.content_limit]


def _parse_config(raw: object, path: Path) -> PromptConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise PromptError(f"Frontmatter must be a mapping: {path}")

    try:
        return PromptConfig(
            model=str(raw.get("model") or DEFAULT_MODEL),
            max_tokens=int(raw.get("max_tokens", DEFAULT_MAX_TOKENS)),
            temperature=float(raw.get("temperature", DEFAULT_TEMPERATURE)),
            content_limit=int(raw.get("content_limit", DEFAULT_CONTENT_LIMIT)),
            description=raw.get("description"),
        )
    except (TypeError, ValueError) as e:
        raise PromptError(f"Invalid prompt config in {path}: {e}") from e


def parse_prompt_file(path: Path) -> PromptTemplate:
    text = path.read_text(encoding="utf-8")
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        raise PromptError(f"Invalid prompt file format: {path}")

    frontmatter, body = match.groups()
    try:
        raw = yaml.safe_load(frontmatter)
    except yaml.YAMLError as e:
        raise PromptError(f"Invalid YAML frontmatter in {path}: {e}") from e

    return PromptTemplate(
        name=path.stem,
        system_prompt=body.strip(),
        config=_parse_config(raw, path),
    )


def load_prompt(name: str, directory: Path) -> PromptTemplate:
    path = Path(directory) / f"{name}.md"
    if not path.is_file():
        raise PromptError(f"Prompt file not found: {name}.md")
    return parse_prompt_file(path)


def list_prompts(directory: Path) -> list[str]:
    return sorted(p.stem for p in Path(directory).glob("*.md"))


def render_prompt(template: str, variables: Mapping[str, str]) -> str:
    """Replace `{{name}}` placeholders with their values."""
    rendered = template
    for key, value in variables.items():
        rendered = rendered.replace("{{" + key + "}}", value)
    return rendered


class PromptLibrary:
    """Read-only collection of the templates found at startup."""

    def __init__(self, templates: Mapping[str, PromptTemplate]) -> None:
        self._templates = MappingProxyType(dict(templates))

    @classmethod
    def load(cls, directory: Path) -> PromptLibrary:
        templates = {name: load_prompt(name, directory) for name in list_prompts(directory)}
        logger.info(
            "Loaded %d prompt templates from %s: %s",
            len(templates), directory, ", ".join(templates) or "-",
        )
        return cls(templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, name: str) -> PromptTemplate:
        try:
            return self._templates[name]
        except KeyError:
            raise PromptError(f"Prompt file not found: {name}.md") from None

    @property
    def names(self) -> list[str]:
        return list(self._templates)
