"""Context retrieval and document reconstruction over the vector store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from compliance_kb.ingest.embeddings import Embedder
from compliance_kb.retrieval.vector_store import Match, VectorStore

logger = logging.getLogger(__name__)

GENERIC_PREVIEW_QUERY = "text content document"


@dataclass(slots=True)
class SourceCitation:
    id: str
    title: str
    text: str
    score: float
    file_id: str
    chunk_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "score": self.score,
            "fileId": self.file_id,
            "chunkIndex": self.chunk_index,
        }


@dataclass(slots=True)
class ContextResult:
    context: str
    sources: list[SourceCitation] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def context_used(self) -> bool:
        return bool(self.sources)


@dataclass(slots=True)
class Reconstruction:
    file_id: str
    preview: str
    chunk_count: int


class QueryService:
    """Read paths shared by chat, compliance analysis and document preview."""

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        context_top_k: int = 5,
        preview_top_k: int = 500,
        namespace: str | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embedder = embedder
        self.context_top_k = context_top_k
        self.preview_top_k = preview_top_k
        self.namespace = namespace

    def retrieve_context(self, query_text: str, top_k: int | None = None) -> ContextResult:
        """Embed ``query_text`` and assemble the top matches into an LLM context block."""
        vector = self.embedder.embed(query_text)
        matches = self.vector_store.query(vector, top_k or self.context_top_k, namespace=self.namespace)
        context = "\n\n".join(
            f"[{match.metadata.get('title') or 'Document'}]: {match.metadata.get('text') or match.id}"
            for match in matches
        )
        sources = [
            SourceCitation(
                id=match.id,
                title=match.metadata.get("title") or "Untitled Document",
                text=match.metadata.get("text") or "",
                score=match.score or 0.0,
                file_id=match.metadata.get("fileId") or "",
                chunk_index=_chunk_index(match),
            )
            for match in matches
        ]
        confidence = matches[0].score if matches else 0.0
        return ContextResult(context=context, sources=sources, confidence=confidence or 0.0)

    def find_relevant_context(self, query_text: str, top_k: int = 10) -> str:
        return self.retrieve_context(query_text, top_k=top_k).context

    def reconstruct(self, file_id: str, top_k: int | None = None) -> Reconstruction:
        """Reassemble a file's indexed chunks in ``chunkIndex`` order.

        The store offers no lookup by metadata, so this issues a broad
        similarity query and filters client-side. Files with more chunks than
        ``top_k`` come back truncated.
        """
        limit = top_k or self.preview_top_k
        matches = self._matches_for_file(file_id, file_id, limit)
        if not matches:
            logger.info("No chunks matched file id query; retrying with generic query", extra={"ctx_file_id": file_id})
            matches = self._matches_for_file(GENERIC_PREVIEW_QUERY, file_id, limit)

        matches.sort(key=_chunk_index)
        texts = [_chunk_text(match) for match in matches]
        preview = "\n\n".join(text for text in texts if text)
        return Reconstruction(file_id=file_id, preview=preview, chunk_count=len(matches))

    def _matches_for_file(self, query_text: str, file_id: str, limit: int) -> list[Match]:
        vector = self.embedder.embed(query_text)
        matches = self.vector_store.query(vector, limit, namespace=self.namespace)
        filtered = [match for match in matches if _file_id(match) == file_id]
        if filtered and len(matches) >= limit:
            logger.warning(
                "Preview query hit its top_k limit; trailing chunks may be missing",
                extra={"ctx_file_id": file_id, "ctx_top_k": limit, "ctx_matched": len(filtered)},
            )
        return filtered


def _file_id(match: Match) -> Any:
    return match.metadata.get("fileId") or match.metadata.get("file_id")


def _chunk_index(match: Match) -> int:
    raw = match.metadata.get("chunkIndex")
    if raw is None:
        raw = match.metadata.get("chunk_index")
    try:
        return int(raw or 0)
    except (TypeError, ValueError):
        return 0


def _chunk_text(match: Match) -> str:
    return match.metadata.get("text") or match.metadata.get("content") or ""


def build_sources(results: Sequence[SourceCitation]) -> list[dict[str, Any]]:
    return [source.to_dict() for source in results]


__all__ = [
    "QueryService",
    "ContextResult",
    "SourceCitation",
    "Reconstruction",
    "GENERIC_PREVIEW_QUERY",
    "build_sources",
]
