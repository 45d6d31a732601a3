"""Tests for chunker."""

from compliance_kb.ingest.chunker import build_chunks, chunk_text
from compliance_kb.ingest.types import SourceFile


def test_paragraph_tier(sample_text: str) -> None:
    chunks = chunk_text(sample_text)
    assert len(chunks) == 3
    assert chunks[0].startswith("Accessible documents")


def test_short_paragraphs_are_dropped() -> None:
    text = "Tiny.\n\nThis paragraph is comfortably longer than twenty characters."
    assert chunk_text(text) == ["This paragraph is comfortably longer than twenty characters."]


def test_sentence_tier() -> None:
    # Both paragraphs are too short, but the first sentence spans the break.
    text = "Alpha beta gamma\n\ndelta epsilon. Zeta"
    assert chunk_text(text) == ["Alpha beta gamma\n\ndelta epsilon"]


def test_window_tier() -> None:
    assert chunk_text("Short one.\n\nAlso short.\n\nok") == ["Short one.\n\nAlso short.\n\nok"]

    chunks = chunk_text("Tiny.\n\n" * 200)
    assert len(chunks) == 3
    assert all(0 < len(chunk) <= 500 for chunk in chunks)


def test_empty_input() -> None:
    assert chunk_text("") == []
    assert chunk_text("   \n\n  ") == []
    assert chunk_text("too short") == []


def test_chunk_ids_are_deterministic() -> None:
    source = SourceFile(file_id="abc123", name="policy.txt")
    fragments = ["one fragment that is long", "another fragment that is long"]
    first = build_chunks(source, fragments)
    second = build_chunks(source, fragments)
    assert [chunk.id for chunk in first] == ["abc123-chunk-0", "abc123-chunk-1"]
    assert [chunk.id for chunk in first] == [chunk.id for chunk in second]
    assert [chunk.chunk_index for chunk in first] == [0, 1]
