# =============================================================================
# Content Sanitizer — Best-Effort Markup Stripping
# =============================================================================
#
# Removes <script>...</script> blocks, then every remaining tag, then trims.
# This is a text clean-up step for stored notes, NOT a security boundary:
# regex stripping cannot handle malformed or nested markup. Anything that
# renders note text as HTML must still escape it on output.
# =============================================================================

from __future__ import annotations

import re

_SCRIPT_BLOCK_RE = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_content(content: object) -> str:
    if not content or not isinstance(content, str):
        return ""
    without_scripts = _SCRIPT_BLOCK_RE.sub("", content)
    return _TAG_RE.sub("", without_scripts).strip()
