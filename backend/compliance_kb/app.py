"""FastAPI application setup for the compliance knowledge base."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from compliance_kb.api.dependencies import get_app_settings, get_embedding_model, get_extractors
from compliance_kb.api.routes_admin import router as admin_router
from compliance_kb.api.routes_chat import router as chat_router
from compliance_kb.api.routes_compliance import router as compliance_router
from compliance_kb.api.routes_documents import router as documents_router
from compliance_kb.api.routes_ingest import router as ingest_router
from compliance_kb.core.errors import ComplianceKBError, ValidationError
from compliance_kb.core.logging import configure_logging
from compliance_kb.core.metrics import REQUEST_COUNT, REQUEST_LATENCY

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Compliance Knowledge Base",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
app.include_router(documents_router, prefix="/documents", tags=["documents"])
app.include_router(chat_router, prefix="", tags=["chat"])
app.include_router(compliance_router, prefix="", tags=["compliance"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    start = time.perf_counter()
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    finally:
        endpoint = request.url.path
        REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - start)
        REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=status).inc()


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "error": detail})


@app.exception_handler(ComplianceKBError)
async def handle_service_error(request: Request, exc: ComplianceKBError) -> JSONResponse:
    logger.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc) or "Internal server error"})


@app.on_event("startup")
async def startup() -> None:
    """Warm up the local singletons; remote clients are created on first use."""
    get_app_settings()
    get_embedding_model()
    get_extractors()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
