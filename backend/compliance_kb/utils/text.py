"""Text processing helpers."""

from __future__ import annotations

import re

_INLINE_WS_RE = re.compile(r"[ \t\f\v\r]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n\s*")


def normalize(text: str) -> str:
    """Collapse runs of inline whitespace and blank lines, keeping paragraph breaks."""
    text = text.replace("\x00", "")
    text = _INLINE_WS_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    lines = [line.strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def clip(text: str, limit: int) -> str:
    """Return at most ``limit`` leading characters of ``text``."""
    return text if len(text) <= limit else text[:limit]
