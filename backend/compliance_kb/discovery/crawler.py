"""Same-domain breadth-first crawler that collects PDF links.

Pages are visited in FIFO order with a depth annotation. A URL is marked
visited before it is fetched and is never fetched twice. Fetch failures count
as empty pages. The crawl ends when the queue drains or ``max_pdfs`` links
have been collected.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterator
from urllib.parse import unquote, urljoin, urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup

from compliance_kb.core.errors import ValidationError
from compliance_kb.core.metrics import CRAWLED_PAGES

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ADA Compliance PDF Link Scanner)"
_SKIPPED_PREFIXES = ("javascript:", "mailto:", "tel:", "#")


@dataclass(slots=True, frozen=True)
class PdfLink:
    url: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "name": self.name}


def normalize_seed(url: str) -> str:
    """Prefix ``https://`` when no scheme is given and validate the result."""
    candidate = (url or "").strip()
    if not candidate:
        raise ValidationError("URL is required")
    if not candidate.lower().startswith("http"):
        candidate = f"https://{candidate}"
    parts = urlsplit(candidate)
    if parts.scheme not in {"http", "https"} or not parts.hostname:
        raise ValidationError("Invalid URL format")
    return candidate


def normalize_url(url: str) -> str:
    """Canonical form used for dedup: lower-case scheme/host, no fragment, one trailing slash removed."""
    parts = urlsplit(url)
    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    path = parts.path or "/"
    normalized = urlunsplit((parts.scheme.lower(), netloc, path, parts.query, ""))
    return normalized[:-1] if normalized.endswith("/") else normalized


def is_pdf_link(url: str) -> bool:
    parts = urlsplit(url)
    lowered = url.lower()
    return parts.path.lower().endswith(".pdf") or ".pdf" in lowered or ".pdf" in parts.query.lower()


def pdf_name(url: str) -> str:
    segment = unquote(urlsplit(url).path.rsplit("/", 1)[-1]) or "document.pdf"
    return segment if segment.lower().endswith(".pdf") else f"{segment}.pdf"


def same_domain(host: str | None, base_host: str) -> bool:
    if not host:
        return False
    host = host.lower()
    return host == base_host or host.endswith(f".{base_host}")


def extract_links(html: str, base_url: str) -> Iterator[str]:
    """Yield absolute same-domain http(s) links found in ``<a href>`` attributes."""
    base_host = (urlsplit(base_url).hostname or "").lower()
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(_SKIPPED_PREFIXES):
            continue
        try:
            absolute = urljoin(base_url, href)
            parts = urlsplit(absolute)
        except ValueError:
            continue
        if parts.scheme not in {"http", "https"}:
            continue
        if same_domain(parts.hostname, base_host):
            yield absolute


class PdfLinkCrawler:
    """Discover PDF documents reachable from a seed page."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_redirects: int = 5,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.max_redirects = max_redirects
        self._session.headers["User-Agent"] = user_agent

    def crawl(self, seed_url: str, max_pdfs: int = 100, max_depth: int = 3) -> list[PdfLink]:
        seed = normalize_url(normalize_seed(seed_url))
        visited: set[str] = set()
        queued: set[str] = {seed}
        queue: deque[tuple[str, int]] = deque([(seed, 0)])
        found: list[PdfLink] = []
        seen_pdfs: set[str] = set()

        while queue and len(found) < max_pdfs:
            url, depth = queue.popleft()
            if url in visited or depth > max_depth:
                continue
            visited.add(url)

            html = self.fetch_page(url)
            if not html:
                continue

            for link in extract_links(html, url):
                normalized = normalize_url(link)
                if is_pdf_link(link):
                    if normalized not in seen_pdfs and len(found) < max_pdfs:
                        seen_pdfs.add(normalized)
                        found.append(PdfLink(url=normalized, name=pdf_name(normalized)))
                elif depth < max_depth and normalized not in visited and normalized not in queued:
                    queued.add(normalized)
                    queue.append((normalized, depth + 1))

        logger.info(
            "Crawl finished with %s PDF link(s)",
            len(found),
            extra={"ctx_seed": seed, "ctx_pages_visited": len(visited)},
        )
        return found

    def fetch_page(self, url: str) -> str | None:
        """Return the page body, or ``None`` when the request fails."""
        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Error fetching %s: %s", url, exc)
            CRAWLED_PAGES.labels(outcome="error").inc()
            return None
        CRAWLED_PAGES.labels(outcome="ok").inc()
        return resp.text


__all__ = [
    "PdfLink",
    "PdfLinkCrawler",
    "extract_links",
    "is_pdf_link",
    "normalize_seed",
    "normalize_url",
    "pdf_name",
]
