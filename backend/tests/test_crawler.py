"""Tests for the PDF link crawler."""

from __future__ import annotations

import pytest

from compliance_kb.core.errors import ValidationError
from compliance_kb.discovery.crawler import (
    PdfLinkCrawler,
    extract_links,
    is_pdf_link,
    normalize_seed,
    normalize_url,
    pdf_name,
)


def _crawler(pages: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> tuple[PdfLinkCrawler, list[str]]:
    crawler = PdfLinkCrawler()
    fetched: list[str] = []

    def fake_fetch(url: str) -> str | None:
        fetched.append(url)
        return pages.get(url)

    monkeypatch.setattr(crawler, "fetch_page", fake_fetch)
    return crawler, fetched


def test_example_site(monkeypatch: pytest.MonkeyPatch) -> None:
    pages = {
        "https://example.com": '<a href="/docs/a.pdf">A</a><a href="/page2">Next</a>',
        "https://example.com/page2": '<a href="/docs/b.pdf">B</a>',
    }
    crawler, _ = _crawler(pages, monkeypatch)
    links = crawler.crawl("https://example.com", max_pdfs=10)
    assert [link.to_dict() for link in links] == [
        {"url": "https://example.com/docs/a.pdf", "name": "a.pdf"},
        {"url": "https://example.com/docs/b.pdf", "name": "b.pdf"},
    ]


def test_pages_are_fetched_once_and_pdfs_deduplicated(monkeypatch: pytest.MonkeyPatch) -> None:
    pages = {
        "https://example.com": '<a href="/a">a</a><a href="/b">b</a><a href="/r.pdf">r</a>',
        "https://example.com/a": '<a href="/b/">b</a><a href="/r.pdf#page=2">r</a><a href="/">home</a>',
        "https://example.com/b": '<a href="/a">a</a><a href="/R.PDF">upper</a>',
    }
    crawler, fetched = _crawler(pages, monkeypatch)
    links = crawler.crawl("example.com")
    assert fetched == ["https://example.com", "https://example.com/a", "https://example.com/b"]
    assert [link.url for link in links] == ["https://example.com/r.pdf", "https://example.com/R.PDF"]


def test_depth_bound(monkeypatch: pytest.MonkeyPatch) -> None:
    pages = {
        "https://example.com": '<a href="/l1">1</a>',
        "https://example.com/l1": '<a href="/l2">2</a>',
        "https://example.com/l2": '<a href="/l3">3</a><a href="/deep.pdf">pdf</a>',
        "https://example.com/l3": '<a href="/l4">4</a><a href="/deeper.pdf">pdf</a>',
    }
    crawler, fetched = _crawler(pages, monkeypatch)
    links = crawler.crawl("https://example.com", max_depth=2)
    assert fetched == ["https://example.com", "https://example.com/l1", "https://example.com/l2"]
    assert [link.name for link in links] == ["deep.pdf"]


def test_stops_at_max_pdfs(monkeypatch: pytest.MonkeyPatch) -> None:
    anchors = "".join(f'<a href="/f{idx}.pdf">{idx}</a>' for idx in range(20))
    crawler, _ = _crawler({"https://example.com": anchors + '<a href="/more">more</a>'}, monkeypatch)
    links = crawler.crawl("https://example.com", max_pdfs=5)
    assert [link.name for link in links] == [f"f{idx}.pdf" for idx in range(5)]


def test_fetch_failure_counts_as_empty_page(monkeypatch: pytest.MonkeyPatch) -> None:
    crawler, fetched = _crawler({}, monkeypatch)
    assert crawler.crawl("https://example.com") == []
    assert fetched == ["https://example.com"]


def test_extract_links_filters_foreign_and_pseudo_links() -> None:
    html = (
        '<a href="mailto:x@example.com">m</a><a href="javascript:void(0)">j</a>'
        '<a href="tel:123">t</a><a href="#top">h</a><a href="https://other.org/x.pdf">o</a>'
        '<a href="https://docs.example.com/y.pdf">sub</a><a href="ftp://example.com/z.pdf">f</a>'
        '<a href="guide.pdf">rel</a>'
    )
    assert list(extract_links(html, "https://example.com/dir/page")) == [
        "https://docs.example.com/y.pdf",
        "https://example.com/dir/guide.pdf",
    ]


def test_url_helpers() -> None:
    assert normalize_url("HTTPS://Example.com/Docs/#frag") == "https://example.com/Docs"
    assert normalize_url("https://example.com/") == "https://example.com"
    assert normalize_url("http://User:Pw@[::1]:8080/a//") == "http://User:Pw@[::1]:8080/a/"
    assert normalize_url("https://EXAMPLE.com/a//") == "https://example.com/a/"
    assert is_pdf_link("https://example.com/download?file=report.pdf")
    assert is_pdf_link("https://example.com/a.PDF")
    assert not is_pdf_link("https://example.com/page")
    assert pdf_name("https://example.com/download?file=report.pdf") == "download.pdf"
    assert pdf_name("https://example.com") == "document.pdf"
    assert pdf_name("https://example.com/annual%20report.pdf") == "annual report.pdf"


def test_normalize_seed() -> None:
    assert normalize_seed("example.com") == "https://example.com"
    assert normalize_seed("http://example.com") == "http://example.com"
    with pytest.raises(ValidationError):
        normalize_seed("  ")
