"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "ckb_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "ckb_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "ckb_ingest_duration_seconds",
    "Ingest pipeline duration per batch",
    labelnames=("source",),
    registry=REGISTRY,
)

INGEST_CHUNKS = Counter(
    "ckb_ingest_chunks_total",
    "Chunks embedded and upserted",
    labelnames=("source",),
    registry=REGISTRY,
)

INGEST_FAILURES = Counter(
    "ckb_ingest_file_failures_total",
    "Files recorded with an error during ingest",
    labelnames=("source",),
    registry=REGISTRY,
)

VECTORS_UPSERTED = Counter(
    "ckb_vectors_upserted_total",
    "Vectors written to the vector store",
    labelnames=("backend",),
    registry=REGISTRY,
)

CRAWLED_PAGES = Counter(
    "ckb_crawled_pages_total",
    "Pages fetched by the PDF link crawler",
    labelnames=("outcome",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "INGEST_DURATION",
    "INGEST_CHUNKS",
    "INGEST_FAILURES",
    "VECTORS_UPSERTED",
    "CRAWLED_PAGES",
    "metrics_response",
]
