"""WCAG 2.1 AA conformance report schema and LLM output parsing."""

from __future__ import annotations

import re
from typing import Any, Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from compliance_kb.core.errors import ParseError

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

RiskLevel = Literal["low", "medium", "high"]
ConformanceLevel = Literal["A", "AA", "AAA", "Non-conformant"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FailedCriterion(_CamelModel):
    criterion: str
    name: str = ""
    level: Literal["A", "AA", "AAA"] = "AA"
    description: str = ""
    impact: str = ""


class WcagConformance(_CamelModel):
    level: ConformanceLevel = "Non-conformant"
    passed_criteria: list[str] = Field(default_factory=list, alias="passedCriteria")
    failed_criteria: list[FailedCriterion] = Field(default_factory=list, alias="failedCriteria")
    warnings: list[str] = Field(default_factory=list)


class ComplianceReport(_CamelModel):
    risks: list[str] = Field(default_factory=list)
    summary: str = "Analysis completed"
    risk_level: RiskLevel = Field(default="medium", alias="riskLevel")
    wcag_conformance: WcagConformance = Field(default_factory=WcagConformance, alias="wcagConformance")


class AnalysisResult(_CamelModel):
    """One analyzed document as returned to API clients."""

    filename: str | None = None
    url: str | None = None
    success: bool = True
    error: str | None = None
    report: ComplianceReport

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.filename is not None:
            payload["filename"] = self.filename
        if self.url is not None:
            payload["url"] = self.url
        payload["success"] = self.success
        if self.error is not None:
            payload["error"] = self.error
        payload.update(self.report.model_dump(by_alias=True))
        return payload


def extract_json_object(text: str) -> str:
    """Return the span from the first ``{`` to the last ``}`` in ``text``."""
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise ParseError("No JSON found in response")
    return match.group(0)


def parse_report(text: str) -> ComplianceReport:
    try:
        payload = orjson.loads(extract_json_object(text))
    except orjson.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in response: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError("Expected a JSON object")
    try:
        return ComplianceReport.model_validate(payload)
    except SchemaError as exc:
        raise ParseError(f"Report does not match schema: {exc.error_count()} error(s)") from exc


def fallback_report(summary: str = "Analysis completed but detailed results unavailable") -> ComplianceReport:
    """Report used when the model answered but its output could not be parsed."""
    return ComplianceReport(
        risks=["Unable to parse detailed analysis"],
        summary=summary,
        risk_level="medium",
        wcag_conformance=WcagConformance(level="Non-conformant", warnings=["Analysis parsing failed"]),
    )


def unavailable_report(summary: str, description: str) -> ComplianceReport:
    """Report for documents that could not be fetched or yielded no text."""
    return ComplianceReport(
        summary=summary,
        risk_level="high",
        wcag_conformance=WcagConformance(
            level="Non-conformant",
            failed_criteria=[
                FailedCriterion(
                    criterion="N/A",
                    name="Unable to analyze",
                    level="AA",
                    description=description,
                    impact="Cannot determine compliance status",
                )
            ],
        ),
    )


def failed_report() -> ComplianceReport:
    return ComplianceReport(summary="Analysis failed", risk_level="high")


__all__ = [
    "AnalysisResult",
    "ComplianceReport",
    "FailedCriterion",
    "WcagConformance",
    "extract_json_object",
    "parse_report",
    "fallback_report",
    "unavailable_report",
    "failed_report",
]
