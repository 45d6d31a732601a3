"""Chunking utilities.

Documents are split with a three-tier fallback; exactly one tier is used per
document, the first one that yields at least one fragment:

1. paragraphs (blank-line boundaries),
2. sentences (terminator punctuation followed by whitespace),
3. fixed-size character windows.

Every tier drops fragments whose stripped length does not exceed
``min_length``.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from compliance_kb.ingest.types import Chunk, SourceFile
from compliance_kb.utils.ids import chunk_id

DEFAULT_MIN_LENGTH = 20
DEFAULT_WINDOW_SIZE = 500

_PARAGRAPH_RE = re.compile(r"\n\n+")
_SENTENCE_RE = re.compile(r"[.!?]+\s+")


def chunk_text(
    text: str,
    min_length: int = DEFAULT_MIN_LENGTH,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> list[str]:
    """Split text into non-empty fragments using the first productive tier."""
    if not text or not text.strip():
        return []

    paragraphs = _keep(_PARAGRAPH_RE.split(text), min_length)
    if paragraphs:
        return paragraphs

    sentences = _keep(_SENTENCE_RE.split(text), min_length)
    if sentences:
        return sentences

    return _keep(_windows(text, window_size), min_length)


def build_chunks(source_file: SourceFile, fragments: Iterable[str]) -> list[Chunk]:
    """Attach contiguous zero-based indices and deterministic ids to fragments."""
    return [
        Chunk(
            id=chunk_id(source_file.file_id, index),
            file_id=source_file.file_id,
            chunk_index=index,
            text=fragment,
        )
        for index, fragment in enumerate(fragments)
    ]


def _keep(fragments: Iterable[str], min_length: int) -> list[str]:
    kept: list[str] = []
    for fragment in fragments:
        stripped = fragment.strip()
        if len(stripped) > min_length:
            kept.append(stripped)
    return kept


def _windows(text: str, size: int) -> Iterator[str]:
    for start in range(0, len(text), size):
        yield text[start : start + size]


__all__ = ["chunk_text", "build_chunks", "DEFAULT_MIN_LENGTH", "DEFAULT_WINDOW_SIZE"]
