"""Tests for text extractors."""

from __future__ import annotations

import io

import fitz
from docx import Document

from compliance_kb.ingest.extractors import DOCX_MIME, PDF_MIME, ExtractorRegistry, extract_text


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_pdf_pages_are_joined() -> None:
    text = extract_text(_pdf_bytes("First page text", "Second page text"), PDF_MIME)
    assert "First page text" in text
    assert "Second page text" in text
    assert text.index("First") < text.index("Second")


def test_docx_paragraphs() -> None:
    document = Document()
    document.add_paragraph("Accessibility statement")
    document.add_paragraph("")
    document.add_paragraph("Contact the web team for alternate formats")
    buffer = io.BytesIO()
    document.save(buffer)
    text = extract_text(buffer.getvalue(), DOCX_MIME)
    assert text == "Accessibility statement\n\nContact the web team for alternate formats"


def test_plain_text_and_charset_parameter() -> None:
    assert extract_text("hello   world\r\n".encode(), "text/plain; charset=utf-8") == "hello world"
    assert extract_text(b"a,b\n1,2", "text/csv") == "a,b\n1,2"


def test_html_drops_scripts() -> None:
    html = b"<html><body><script>var x = 1;</script><p>Visible text</p></body></html>"
    assert extract_text(html, "text/html") == "Visible text"


def test_unsupported_empty_and_corrupt_inputs_yield_empty_string() -> None:
    registry = ExtractorRegistry()
    assert registry.extract(b"", "text/plain") == ""
    assert registry.extract(b"\x00\x01", "image/png") == ""
    assert registry.extract(b"not a pdf", PDF_MIME) == ""
