# =============================================================================
# Unit Tests — Prompt Templates
# =============================================================================

from __future__ import annotations

import pytest

from voicenotes.config import DEFAULT_PROMPTS_DIR
from voicenotes.services.prompts import (
    PromptConfig,
    PromptError,
    PromptLibrary,
    PromptTemplate,
    list_prompts,
    load_prompt,
    parse_prompt_file,
    render_prompt,
)


class TestPackagedPrompts:
    def test_all_templates_present(self):
        assert list_prompts(DEFAULT_PROMPTS_DIR) == [
            "idea-organization",
            "tags-generation",
            "title-generation",
        ]

    def test_title_template_config(self):
        prompt = load_prompt("title-generation", DEFAULT_PROMPTS_DIR)
        assert prompt.config.model == "llama-3.1-8b-instant"
        assert prompt.config.max_tokens == 20
        assert prompt.config.temperature == 0.3
        assert prompt.config.content_limit == 1000
        assert prompt.system_prompt.startswith("Genera un título")

    def test_organization_template_allows_longer_input(self):
        prompt = load_prompt("idea-organization", DEFAULT_PROMPTS_DIR)
        assert prompt.config.content_limit == 2000
        assert prompt.config.max_tokens == 1024


class TestParsing:
    def test_defaults_for_missing_keys(self, tmp_path):
        path = tmp_path / "summary.md"
        path.write_text("---\ndescription: short\n---\nSummarize.\n", encoding="utf-8")

        prompt = parse_prompt_file(path)

        assert prompt.name == "summary"
        assert prompt.system_prompt == "Summarize."
        assert prompt.config == PromptConfig(description="short")

    def test_missing_frontmatter(self, tmp_path):
        path = tmp_path / "bad.md"
        path.write_text("Just a prompt", encoding="utf-8")
        with pytest.raises(PromptError, match="Invalid prompt file format"):
            parse_prompt_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.md"
        path.write_text("---\nmodel: [unclosed\n---\nBody\n", encoding="utf-8")
        with pytest.raises(PromptError, match="Invalid YAML"):
            parse_prompt_file(path)

    def test_non_numeric_config(self, tmp_path):
        path = tmp_path / "bad.md"
        path.write_text("---\nmax_tokens: lots\n---\nBody\n", encoding="utf-8")
        with pytest.raises(PromptError, match="Invalid prompt config"):
            parse_prompt_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PromptError, match="Prompt file not found: nope.md"):
            load_prompt("nope", tmp_path)


class TestHelpers:
    def test_render_replaces_placeholders(self):
        assert render_prompt("Hola {{name}}, {{name}}!", {"name": "Ana"}) == "Hola Ana, Ana!"

    def test_render_leaves_unknown_placeholders(self):
        assert render_prompt("{{a}} {{b}}", {"a": "1"}) == "1 {{b}}"

    def test_limit_cuts_content(self):
        prompt = PromptTemplate("p", "sys", PromptConfig(content_limit=5))
        assert prompt.limit("abcdefgh") == "abcde"


class TestPromptLibrary:
    def test_load_and_get(self):
        library = PromptLibrary.load(DEFAULT_PROMPTS_DIR)
        assert len(library) == 3
        assert "tags-generation" in library
        assert library.get("tags-generation").config.max_tokens == 50

    def test_unknown_name(self):
        library = PromptLibrary({})
        with pytest.raises(PromptError):
            library.get("title-generation")
