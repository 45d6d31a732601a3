"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class SourceFile:
    """A document listed by a file source; read-only to the pipeline."""

    file_id: str
    name: str
    mime_type: str = "text/plain"
    modified_time: datetime | None = None


@dataclass(slots=True, frozen=True)
class Chunk:
    """Fragment of one file's extracted text, in reconstruction order."""

    id: str
    file_id: str
    chunk_index: int
    text: str


@dataclass(slots=True)
class FileReport:
    """Outcome for a single source file."""

    name: str
    chunks: int = 0
    error: str | None = None
    file_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "chunks": self.chunks}
        if self.file_id is not None:
            payload["fileId"] = self.file_id
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class SyncReport:
    """Aggregated result of one ingestion batch."""

    sync_id: str
    message: str = ""
    processed_files: list[FileReport] = field(default_factory=list)
    failed_file_details: list[dict[str, str]] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def total_files(self) -> int:
        return len(self.processed_files)

    @property
    def total_chunks(self) -> int:
        return sum(report.chunks for report in self.processed_files)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "syncId": self.sync_id,
            "message": self.message,
            "totalFiles": self.total_files,
            "totalChunks": self.total_chunks,
            "processedFiles": [report.to_dict() for report in self.processed_files],
        }
        if self.failed_file_details:
            payload["failedFileDetails"] = list(self.failed_file_details)
        if self.started_at is not None:
            payload["startedAt"] = self.started_at.isoformat()
        if self.finished_at is not None:
            payload["finishedAt"] = self.finished_at.isoformat()
        return payload


__all__ = ["SourceFile", "Chunk", "FileReport", "SyncReport"]
