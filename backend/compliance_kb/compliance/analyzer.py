"""WCAG 2.1 AA compliance analysis of PDF documents.

Each document is analyzed independently: a fetch, extraction or model failure
turns into a failed result for that document and the batch continues.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import requests

from compliance_kb.chat.llm import ChatModel
from compliance_kb.compliance.report import (
    AnalysisResult,
    ComplianceReport,
    failed_report,
    fallback_report,
    parse_report,
    unavailable_report,
)
from compliance_kb.core.errors import ParseError, ValidationError
from compliance_kb.ingest.extractors import PDF_MIME, ExtractorRegistry
from compliance_kb.retrieval.search import QueryService
from compliance_kb.utils.text import clip

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ADA Compliance PDF Analyzer)"
WCAG_CONTEXT_QUERY = "WCAG 2.1 AA compliance standards requirements"
WCAG_CONTEXT_TOP_K = 10
MAX_DOCUMENT_CHARS = 8000
ANALYSIS_TEMPERATURE = 0.3

ANALYSIS_PROMPT = """You are an expert in WCAG 2.1 AA compliance. Analyze the following PDF content against WCAG 2.1 AA standards.

WCAG 2.1 AA Standards Context:
{context}

PDF Content (first {limit} characters):
{content}

Analyze the PDF for compliance with WCAG 2.1 AA standards. Focus on:
1. Perceivable: Alt text for images, captions, color contrast, text alternatives
2. Operable: Keyboard navigation, focus indicators, no seizure-inducing content
3. Understandable: Language declaration, consistent navigation, form labels, error identification
4. Robust: Document structure, tagging, reading order, metadata

Provide a comprehensive WCAG 2.1 AA conformance report with this JSON structure:
{{
  "risks": ["specific WCAG 2.1 AA violation 1", "specific WCAG 2.1 AA violation 2", ...],
  "summary": "Overall compliance summary against WCAG 2.1 AA",
  "riskLevel": "low" | "medium" | "high",
  "wcagConformance": {{
    "level": "A" | "AA" | "AAA" | "Non-conformant",
    "passedCriteria": ["WCAG criterion that passed", ...],
    "failedCriteria": [
      {{
        "criterion": "WCAG 2.1 criterion code (e.g., 1.1.1)",
        "name": "Criterion name",
        "level": "A" | "AA" | "AAA",
        "description": "Why this criterion failed",
        "impact": "Impact on users"
      }}
    ],
    "warnings": ["Potential issues that may not be violations", ...]
  }}
}}

Only return valid JSON, no other text."""


class ComplianceAnalyzer:
    def __init__(
        self,
        llm: ChatModel,
        query_service: QueryService,
        extractors: ExtractorRegistry | None = None,
        timeout: float = 30.0,
        max_redirects: int = 5,
        user_agent: str = DEFAULT_USER_AGENT,
        max_upload_files: int = 10,
        max_url_batch: int = 100,
        session: requests.Session | None = None,
    ) -> None:
        self.llm = llm
        self.query_service = query_service
        self.extractors = extractors or ExtractorRegistry()
        self.timeout = timeout
        self.max_upload_files = max_upload_files
        self.max_url_batch = max_url_batch
        self._session = session or requests.Session()
        self._session.max_redirects = max_redirects
        self._session.headers["User-Agent"] = user_agent

    def analyze_documents(self, documents: Sequence[tuple[str, bytes]]) -> list[AnalysisResult]:
        """Analyze uploaded ``(filename, data)`` pairs."""
        if not documents:
            raise ValidationError("No PDF files provided")
        if len(documents) > self.max_upload_files:
            raise ValidationError(f"Maximum {self.max_upload_files} PDFs allowed per request")
        return [self.analyze_document(name, data) for name, data in documents]

    def analyze_document(self, name: str, data: bytes, mime_type: str = PDF_MIME) -> AnalysisResult:
        try:
            text = self.extractors.extract(data, mime_type)
            if not text.strip():
                return AnalysisResult(
                    filename=name,
                    success=False,
                    error="No text extracted from PDF",
                    report=unavailable_report(
                        "Unable to extract text for analysis", "PDF could not be processed for analysis"
                    ),
                )
            report = self._assess(text, fallback_summary="PDF analyzed but detailed results unavailable")
            return AnalysisResult(filename=name, report=report)
        except Exception as exc:
            logger.exception("Error analyzing PDF %s", name)
            return AnalysisResult(filename=name, success=False, error=str(exc), report=failed_report())

    def analyze_urls(self, urls: Iterable[str]) -> list[AnalysisResult]:
        items = [url for url in urls or [] if isinstance(url, str) and url.strip()]
        if not items:
            raise ValidationError("URLs array is required")
        if len(items) > self.max_url_batch:
            raise ValidationError(f"Maximum {self.max_url_batch} PDFs allowed")
        return [self.analyze_url(url) for url in items]

    def analyze_url(self, url: str) -> AnalysisResult:
        try:
            data = self.fetch_pdf(url)
            if data is None:
                return AnalysisResult(
                    url=url,
                    success=False,
                    error="Failed to fetch PDF",
                    report=unavailable_report("Unable to fetch PDF for analysis", "PDF could not be fetched"),
                )
            text = self.extractors.extract(data, PDF_MIME)
            if not text.strip():
                return AnalysisResult(
                    url=url,
                    success=False,
                    error="No text extracted from PDF",
                    report=unavailable_report("Unable to extract text for analysis", "PDF could not be processed"),
                )
            return AnalysisResult(url=url, report=self._assess(text))
        except Exception as exc:
            logger.exception("Error analyzing PDF %s", url)
            return AnalysisResult(url=url, success=False, error=str(exc), report=failed_report())

    def fetch_pdf(self, url: str) -> bytes | None:
        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Error fetching PDF %s: %s", url, exc)
            return None
        return resp.content

    def _assess(self, text: str, fallback_summary: str | None = None) -> ComplianceReport:
        context = self.query_service.find_relevant_context(WCAG_CONTEXT_QUERY, top_k=WCAG_CONTEXT_TOP_K)
        prompt = ANALYSIS_PROMPT.format(
            context=context,
            limit=MAX_DOCUMENT_CHARS,
            content=clip(text, MAX_DOCUMENT_CHARS),
        )
        answer = self.llm.complete(
            [{"role": "user", "content": prompt}],
            context=context or None,
            temperature=ANALYSIS_TEMPERATURE,
        )
        try:
            return parse_report(answer)
        except ParseError as exc:
            logger.warning("Falling back to default report: %s", exc)
            return fallback_report(fallback_summary) if fallback_summary else fallback_report()


__all__ = ["ComplianceAnalyzer", "ANALYSIS_PROMPT", "WCAG_CONTEXT_QUERY"]
