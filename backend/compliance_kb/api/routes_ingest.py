"""Ingest API routes."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Query

from compliance_kb.api.dependencies import get_app_settings, get_drive_source, get_ingest_pipeline
from compliance_kb.core.config import Settings
from compliance_kb.core.errors import ValidationError
from compliance_kb.ingest.pipeline import IngestPipeline
from compliance_kb.ingest.sources import GoogleDriveSource, LocalFolderSource
from compliance_kb.models.dto import LocalIngestRequest, SyncResponse

router = APIRouter()


@router.post("/sync", response_model=SyncResponse, response_model_exclude_none=True, summary="Sync a Drive folder")
def sync_drive_folder(
    folder_id: str | None = Query(default=None, alias="folderId"),
    settings: Settings = Depends(get_app_settings),
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> dict[str, Any]:
    target = folder_id or settings.google_drive_folder_id
    if not target:
        raise ValidationError("Folder ID is required")
    source: GoogleDriveSource = get_drive_source()
    return pipeline.sync_folder(source, target).to_dict()


@router.post("/local", response_model=SyncResponse, response_model_exclude_none=True, summary="Ingest a local folder")
def ingest_local_folder(
    request: LocalIngestRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> dict[str, Any]:
    if not request.path.strip():
        raise ValidationError("Path is required")
    source = LocalFolderSource(
        Path(request.path),
        include_glob=request.include_glob,
        exclude_glob=request.exclude_glob,
    )
    return pipeline.sync_folder(source, ".").to_dict()
