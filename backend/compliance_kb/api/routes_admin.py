"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Response

from compliance_kb.core.metrics import metrics_response

router = APIRouter()


@router.get("/metrics", summary="Prometheus metrics")
def get_metrics() -> Response:
    return metrics_response()
