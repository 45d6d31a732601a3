"""Document preview routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from compliance_kb.api.dependencies import get_query_service
from compliance_kb.core.errors import ValidationError
from compliance_kb.models.dto import PreviewRequest, PreviewResponse
from compliance_kb.retrieval.search import QueryService

router = APIRouter()

NOT_INDEXED_MESSAGE = (
    "No content found for this document. It may not be fully indexed in the vector database."
)


@router.post("/preview", response_model=PreviewResponse, response_model_exclude_none=True, summary="Reassemble a document")
def preview_document(
    request: PreviewRequest,
    service: QueryService = Depends(get_query_service),
) -> dict[str, Any]:
    if not request.file_id:
        raise ValidationError("File ID is required")
    result = service.reconstruct(request.file_id)
    if not result.preview:
        return {
            "success": False,
            "fileId": result.file_id,
            "preview": "",
            "chunkCount": 0,
            "error": NOT_INDEXED_MESSAGE,
        }
    return {"success": True, "fileId": result.file_id, "preview": result.preview, "chunkCount": result.chunk_count}
