"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LocalIngestRequest(BaseModel):
    path: str = Field(description="Folder on the server's filesystem")
    include_glob: str | None = None
    exclude_glob: str | None = None


class FileResult(BaseModel):
    name: str
    chunks: int = 0
    fileId: str | None = None
    error: str | None = None


class FailedFile(BaseModel):
    name: str
    error: str


class SyncResponse(BaseModel):
    success: bool = True
    syncId: str
    message: str
    totalFiles: int
    totalChunks: int
    processedFiles: list[FileResult]
    failedFileDetails: list[FailedFile] | None = None
    startedAt: str | None = None
    finishedAt: str | None = None


class PreviewRequest(_CamelModel):
    file_id: str = Field(default="", alias="fileId")


class PreviewResponse(BaseModel):
    success: bool
    fileId: str | None = None
    preview: str | None = None
    chunkCount: int | None = None
    error: str | None = None


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = ""


class ChatRequest(BaseModel):
    message: str = ""
    history: list[ChatTurn] = Field(default_factory=list)


class Source(BaseModel):
    id: str
    title: str
    text: str
    score: float
    fileId: str
    chunkIndex: int


class ChatResponse(BaseModel):
    response: str
    contextUsed: bool
    sources: list[Source]
    confidenceScore: float


class UrlBatchRequest(BaseModel):
    urls: list[str] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    success: bool = True
    results: list[dict[str, Any]]


class ScanRequest(_CamelModel):
    url: str = ""
    max_pdfs: int = Field(default=100, alias="maxPdfs")


class PdfLinkItem(BaseModel):
    url: str
    name: str


class ScanResponse(BaseModel):
    success: bool = True
    pdfs: list[PdfLinkItem]
    count: int
