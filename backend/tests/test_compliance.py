"""Tests for compliance report parsing and the analyzer."""

from __future__ import annotations

from unittest import mock

import fitz
import pytest
import requests

from compliance_kb.compliance.analyzer import WCAG_CONTEXT_QUERY, ComplianceAnalyzer
from compliance_kb.compliance.report import (
    ComplianceReport,
    extract_json_object,
    fallback_report,
    parse_report,
)
from compliance_kb.core.errors import ParseError, ValidationError
from compliance_kb.ingest.embeddings import HashedEmbedder
from compliance_kb.retrieval import InMemoryVectorStore, QueryService, VectorRecord

from conftest import FakeChatModel

REPORT_JSON = """Here is the report:
{
  "risks": ["Images lack alternative text"],
  "summary": "Several perceivable criteria fail",
  "riskLevel": "high",
  "wcagConformance": {
    "level": "Non-conformant",
    "passedCriteria": ["2.4.2"],
    "failedCriteria": [
      {"criterion": "1.1.1", "name": "Non-text Content", "level": "A",
       "description": "No alt text", "impact": "Screen reader users miss content"}
    ],
    "warnings": []
  }
}
Thanks!"""


def _pdf_bytes(text: str) -> bytes:
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def query_service() -> QueryService:
    embedder = HashedEmbedder(dim=64)
    store = InMemoryVectorStore(dim=64)
    text = "WCAG 2.1 AA requires text alternatives for non-text content"
    store.upsert([VectorRecord("wcag-chunk-0", embedder.embed(text), {"title": "WCAG", "text": text})])
    return QueryService(store, embedder)


def _analyzer(llm: FakeChatModel, query_service: QueryService, session: mock.Mock | None = None) -> ComplianceAnalyzer:
    if session is None:
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
    return ComplianceAnalyzer(llm, query_service, session=session)


def test_parse_report_from_surrounding_text() -> None:
    report = parse_report(REPORT_JSON)
    assert report.risk_level == "high"
    assert report.wcag_conformance.failed_criteria[0].criterion == "1.1.1"
    dumped = report.model_dump(by_alias=True)
    assert dumped["riskLevel"] == "high"
    assert dumped["wcagConformance"]["passedCriteria"] == ["2.4.2"]


def test_missing_fields_take_defaults() -> None:
    report = parse_report('{"risks": ["x"]}')
    assert report.summary == "Analysis completed"
    assert report.risk_level == "medium"
    assert report.wcag_conformance.level == "Non-conformant"


@pytest.mark.parametrize("answer", ["no json here", "{not valid json}", '{"riskLevel": "catastrophic"}', "[1, 2]"])
def test_unparseable_answers_raise(answer: str) -> None:
    with pytest.raises(ParseError):
        parse_report(answer)


def test_extract_json_object_is_greedy() -> None:
    assert extract_json_object('a {"x": {"y": 1}} b') == '{"x": {"y": 1}}'


def test_fallback_report() -> None:
    report = fallback_report()
    assert report.risks == ["Unable to parse detailed analysis"]
    assert report.risk_level == "medium"
    assert report.wcag_conformance.level == "Non-conformant"
    assert report.wcag_conformance.warnings == ["Analysis parsing failed"]


def test_analyze_document_prompts_with_wcag_context(query_service: QueryService) -> None:
    llm = FakeChatModel(REPORT_JSON)
    result = _analyzer(llm, query_service).analyze_document("policy.pdf", _pdf_bytes("Annual accessibility plan"))
    payload = result.to_dict()
    assert payload["filename"] == "policy.pdf"
    assert payload["success"] is True
    assert payload["riskLevel"] == "high"
    call = llm.calls[0]
    assert call["temperature"] == 0.3
    assert "WCAG 2.1 AA requires text alternatives" in call["context"]
    assert "Annual accessibility plan" in call["messages"][0]["content"]
    assert WCAG_CONTEXT_QUERY.startswith("WCAG 2.1 AA")


def test_analyze_document_falls_back_on_bad_json(query_service: QueryService) -> None:
    result = _analyzer(FakeChatModel("I could not do it"), query_service).analyze_document(
        "policy.pdf", _pdf_bytes("Annual accessibility plan")
    )
    assert result.success
    assert result.report.risks == ["Unable to parse detailed analysis"]
    assert result.report.summary == "PDF analyzed but detailed results unavailable"


def test_analyze_document_without_text(query_service: QueryService) -> None:
    result = _analyzer(FakeChatModel(), query_service).analyze_document("scan.pdf", b"not a pdf")
    payload = result.to_dict()
    assert payload["success"] is False
    assert payload["error"] == "No text extracted from PDF"
    assert payload["riskLevel"] == "high"
    assert payload["wcagConformance"]["failedCriteria"][0]["criterion"] == "N/A"


def test_model_failure_is_isolated(query_service: QueryService) -> None:
    llm = mock.Mock()
    llm.complete.side_effect = [RuntimeError("model down"), REPORT_JSON]
    analyzer = _analyzer(llm, query_service)
    results = analyzer.analyze_documents([("a.pdf", _pdf_bytes("first document")), ("b.pdf", _pdf_bytes("second"))])
    assert [result.success for result in results] == [False, True]
    assert results[0].error == "model down"
    assert results[0].report.summary == "Analysis failed"


def test_analyze_urls(query_service: QueryService) -> None:
    ok = mock.Mock(spec=requests.Response)
    ok.content = _pdf_bytes("Downloaded accessibility report")
    session = mock.Mock(spec=requests.Session)
    session.headers = {}
    session.get.side_effect = [requests.ConnectionError("refused"), ok]
    analyzer = _analyzer(FakeChatModel(REPORT_JSON), query_service, session=session)

    results = analyzer.analyze_urls(["https://example.com/missing.pdf", "https://example.com/ok.pdf"])
    first, second = (result.to_dict() for result in results)
    assert first["url"] == "https://example.com/missing.pdf"
    assert first["error"] == "Failed to fetch PDF"
    assert first["wcagConformance"]["failedCriteria"][0]["description"] == "PDF could not be fetched"
    assert second["success"] is True
    assert session.headers["User-Agent"] == "Mozilla/5.0 (compatible; ADA Compliance PDF Analyzer)"
    assert session.get.call_args.kwargs["timeout"] == 30.0


def test_batch_limits(query_service: QueryService) -> None:
    analyzer = _analyzer(FakeChatModel(), query_service)
    with pytest.raises(ValidationError):
        analyzer.analyze_urls([])
    with pytest.raises(ValidationError):
        analyzer.analyze_urls([f"https://example.com/{idx}.pdf" for idx in range(101)])
    with pytest.raises(ValidationError):
        analyzer.analyze_documents([])
    with pytest.raises(ValidationError):
        analyzer.analyze_documents([(f"{idx}.pdf", b"") for idx in range(11)])


def test_report_schema_round_trip_aliases() -> None:
    report = ComplianceReport.model_validate({"riskLevel": "low", "wcagConformance": {"level": "AA"}})
    assert report.risk_level == "low"
    assert report.wcag_conformance.level == "AA"
