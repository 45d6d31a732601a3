"""PDF compliance analysis and link discovery routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from compliance_kb.api.dependencies import get_analyzer, get_app_settings, get_crawler
from compliance_kb.compliance.analyzer import ComplianceAnalyzer
from compliance_kb.core.config import Settings
from compliance_kb.core.errors import ValidationError
from compliance_kb.discovery.crawler import PdfLinkCrawler
from compliance_kb.models.dto import AnalysisResponse, ScanRequest, ScanResponse, UrlBatchRequest

router = APIRouter()


@router.post("/pdf/analyze", response_model=AnalysisResponse, summary="Analyze uploaded PDFs")
def analyze_uploads(
    pdfs: list[UploadFile] | None = File(default=None),
    analyzer: ComplianceAnalyzer = Depends(get_analyzer),
) -> dict[str, Any]:
    pdfs = pdfs or []
    if len(pdfs) > analyzer.max_upload_files:
        raise ValidationError(f"Maximum {analyzer.max_upload_files} PDFs allowed per request")
    documents = [(upload.filename or "document.pdf", upload.file.read()) for upload in pdfs]
    results = analyzer.analyze_documents(documents)
    return {"success": True, "results": [result.to_dict() for result in results]}


@router.post("/pdf-links/analyze", response_model=AnalysisResponse, summary="Analyze PDFs by URL")
def analyze_urls(
    request: UrlBatchRequest,
    analyzer: ComplianceAnalyzer = Depends(get_analyzer),
) -> dict[str, Any]:
    results = analyzer.analyze_urls(request.urls)
    return {"success": True, "results": [result.to_dict() for result in results]}


@router.post("/pdf-links/scan", response_model=ScanResponse, summary="Find PDF links on a website")
def scan_site(
    request: ScanRequest,
    settings: Settings = Depends(get_app_settings),
    crawler: PdfLinkCrawler = Depends(get_crawler),
) -> dict[str, Any]:
    if not request.url.strip():
        raise ValidationError("URL is required")
    if request.max_pdfs < 1 or request.max_pdfs > settings.crawl_max_pdfs:
        raise ValidationError(f"Maximum {settings.crawl_max_pdfs} PDFs allowed")
    links = crawler.crawl(request.url, max_pdfs=request.max_pdfs, max_depth=settings.crawl_max_depth)
    return {"success": True, "pdfs": [link.to_dict() for link in links], "count": len(links)}
