"""Text extractors for supported document MIME types."""

from __future__ import annotations

import io
import logging

import fitz
from bs4 import BeautifulSoup
from docx import Document
from markdown_it import MarkdownIt

from compliance_kb.utils.text import normalize

logger = logging.getLogger(__name__)

_MD = MarkdownIt()

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MSWORD_MIME = "application/msword"


class BaseExtractor:
    """Common extractor interface."""

    mime_types: tuple[str, ...] = ()

    def can_extract(self, mime_type: str) -> bool:
        return mime_type in self.mime_types

    def extract(self, data: bytes) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class PDFExtractor(BaseExtractor):
    mime_types = (PDF_MIME,)

    def extract(self, data: bytes) -> str:
        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [page.get_text("text", sort=True) for page in doc]
        return normalize("\n\n".join(pages))


class DocxExtractor(BaseExtractor):
    # Legacy .doc uploads are often docx containers with the old MIME type;
    # real binary .doc files fail to open and yield no text.
    mime_types = (DOCX_MIME, MSWORD_MIME)

    def extract(self, data: bytes) -> str:
        document = Document(io.BytesIO(data))
        paragraphs = [para.text for para in document.paragraphs if para.text.strip()]
        return normalize("\n\n".join(paragraphs))


class MarkdownExtractor(BaseExtractor):
    mime_types = ("text/markdown", "text/x-markdown")

    def extract(self, data: bytes) -> str:
        text = _decode(data)
        parts: list[str] = []
        for token in _MD.parse(text):
            content = token.content.strip()
            if content:
                parts.append(content)
        return normalize("\n\n".join(parts) if parts else text)


class HTMLExtractor(BaseExtractor):
    mime_types = ("text/html", "application/xhtml+xml")

    def extract(self, data: bytes) -> str:
        soup = BeautifulSoup(_decode(data), "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()
        return normalize(soup.get_text("\n\n"))


class PlainTextExtractor(BaseExtractor):
    """Fallback for ``text/*`` types not claimed by a more specific extractor."""

    mime_types = ("text/plain", "text/csv")

    def can_extract(self, mime_type: str) -> bool:
        return mime_type in self.mime_types or mime_type.startswith("text/")

    def extract(self, data: bytes) -> str:
        return normalize(_decode(data))


class ExtractorRegistry:
    """Registry that selects an appropriate extractor for a MIME type."""

    def __init__(self) -> None:
        self._extractors: list[BaseExtractor] = [
            PDFExtractor(),
            DocxExtractor(),
            MarkdownExtractor(),
            HTMLExtractor(),
            PlainTextExtractor(),
        ]

    def for_mime(self, mime_type: str) -> BaseExtractor | None:
        for extractor in self._extractors:
            if extractor.can_extract(mime_type):
                return extractor
        return None

    def extract(self, data: bytes, mime_type: str) -> str:
        """Return the document text, or ``""`` for empty, unsupported or corrupt input."""
        if not data:
            return ""
        mime = _base_mime(mime_type)
        extractor = self.for_mime(mime)
        if extractor is None:
            logger.warning("No extractor registered for MIME type %s", mime)
            return ""
        try:
            return extractor.extract(data)
        except Exception as exc:
            logger.warning("Failed to extract %s document: %s", mime, exc)
            return ""


_DEFAULT_REGISTRY: ExtractorRegistry | None = None


def extract_text(data: bytes, mime_type: str) -> str:
    """Module-level convenience wrapper around a shared registry."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = ExtractorRegistry()
    return _DEFAULT_REGISTRY.extract(data, mime_type)


def _base_mime(mime_type: str | None) -> str:
    if not mime_type:
        return "text/plain"
    return mime_type.split(";", 1)[0].strip().lower()


def _decode(data: bytes) -> str:
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    return data.decode("utf-8", errors="ignore")


__all__ = [
    "BaseExtractor",
    "PDFExtractor",
    "DocxExtractor",
    "MarkdownExtractor",
    "HTMLExtractor",
    "PlainTextExtractor",
    "ExtractorRegistry",
    "extract_text",
    "PDF_MIME",
    "DOCX_MIME",
]
