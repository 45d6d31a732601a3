"""Ingest pipeline orchestration.

For each source file: download, extract, chunk, embed every chunk, then upsert
the file's vectors. Failures are isolated per file; a broken document is
recorded in the report and the batch moves on.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from compliance_kb.core.config import Settings
from compliance_kb.core.logging import get_logger
from compliance_kb.core.metrics import INGEST_CHUNKS, INGEST_DURATION, INGEST_FAILURES
from compliance_kb.ingest.chunker import build_chunks, chunk_text
from compliance_kb.ingest.embeddings import Embedder
from compliance_kb.ingest.extractors import ExtractorRegistry
from compliance_kb.ingest.sources import FileSource
from compliance_kb.ingest.types import Chunk, FileReport, SourceFile, SyncReport
from compliance_kb.retrieval.vector_store import VectorRecord, VectorStore
from compliance_kb.utils.ids import new_id
from compliance_kb.utils.time import utc_now

logger = get_logger(__name__)

EMPTY_FILE_ERROR = "File is empty (0 bytes)"
NO_TEXT_ERROR = "No text extracted"
NO_CHUNKS_ERROR = "No valid chunks created"


class IngestPipeline:
    """Coordinate extraction, chunking, embeddings, and vector upserts."""

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder,
        vector_store: VectorStore,
        extractors: ExtractorRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.embedder = embedder
        self.vector_store = vector_store
        self.extractors = extractors or ExtractorRegistry()

    def sync_folder(self, source: FileSource, folder_id: str) -> SyncReport:
        files = source.list_files(folder_id)
        logger.info("Found %s file(s) in folder %s", len(files), folder_id, extra={"ctx_source": source.name})
        if not files:
            report = SyncReport(sync_id=new_id("sync"), started_at=utc_now())
            report.message = "No files found in the folder"
            report.finished_at = utc_now()
            return report
        return self.ingest_files(source, files)

    def ingest_files(self, source: FileSource, files: Sequence[SourceFile]) -> SyncReport:
        report = SyncReport(sync_id=new_id("sync"), started_at=utc_now())
        candidates = [item for item in files if item.file_id and item.name]
        if len(candidates) != len(files):
            logger.warning("Skipping %s listed file(s) without id or name", len(files) - len(candidates))

        total = len(candidates)

        def process(pair: tuple[int, SourceFile]) -> tuple[FileReport, bool]:
            return self._process_file(source, pair[1], pair[0], total)

        start = time.perf_counter()
        workers = max(1, self.settings.ingest_workers)
        if workers == 1:
            outcomes = [process(pair) for pair in enumerate(candidates, 1)]
        else:
            # map() yields in input order, so the report order matches the listing.
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as pool:
                outcomes = list(pool.map(process, enumerate(candidates, 1)))
        INGEST_DURATION.labels(source=source.name).observe(time.perf_counter() - start)

        for outcome, failed in outcomes:
            report.processed_files.append(outcome)
            if failed:
                report.failed_file_details.append({"name": outcome.name, "error": outcome.error or "Unknown error"})
            if outcome.error:
                INGEST_FAILURES.labels(source=source.name).inc()
            else:
                INGEST_CHUNKS.labels(source=source.name).inc(outcome.chunks)

        report.message = summarize(report)
        report.finished_at = utc_now()
        logger.info(
            report.message,
            extra={"ctx_sync_id": report.sync_id, "ctx_files": report.total_files, "ctx_chunks": report.total_chunks},
        )
        return report

    # Internal helpers -------------------------------------------------

    def _process_file(self, source: FileSource, item: SourceFile, position: int, total: int) -> tuple[FileReport, bool]:
        """Return the file report and whether an exception was caught."""
        logger.info("Processing file %s/%s: %s", position, total, item.name, extra={"ctx_file_id": item.file_id})
        try:
            data = source.get_file_content(item.file_id, item.mime_type)
            if not data:
                logger.warning("File %s has zero bytes", item.name)
                return FileReport(name=item.name, file_id=item.file_id, error=EMPTY_FILE_ERROR), False

            text = self.extractors.extract(data, source.text_mime_type(item.mime_type))
            if not text.strip():
                logger.warning("No text extracted from file %s", item.name)
                return FileReport(name=item.name, file_id=item.file_id, error=NO_TEXT_ERROR), False

            fragments = chunk_text(
                text,
                min_length=self.settings.chunk_min_length,
                window_size=self.settings.chunk_window_size,
            )
            if not fragments:
                logger.warning("No valid chunks created for file %s", item.name)
                return FileReport(name=item.name, file_id=item.file_id, error=NO_CHUNKS_ERROR), False

            chunks = build_chunks(item, fragments)
            self._index_chunks(item, chunks)
            logger.info("Upserted %s chunks for %s", len(chunks), item.name, extra={"ctx_file_id": item.file_id})
            return FileReport(name=item.name, file_id=item.file_id, chunks=len(chunks)), False
        except Exception as exc:
            logger.exception("Error processing file %s: %s", item.name, exc, extra={"ctx_file_id": item.file_id})
            return FileReport(name=item.name, file_id=item.file_id, error=str(exc) or type(exc).__name__), True

    def _index_chunks(self, item: SourceFile, chunks: Sequence[Chunk]) -> None:
        records: list[VectorRecord] = []
        for chunk in chunks:
            records.append(
                VectorRecord(
                    id=chunk.id,
                    values=self.embedder.embed(chunk.text),
                    metadata={
                        "fileId": item.file_id,
                        "title": item.name,
                        "text": chunk.text,
                        "chunkIndex": chunk.chunk_index,
                        "mimeType": item.mime_type,
                    },
                )
            )
        self.vector_store.upsert(records, namespace=self.settings.pinecone_namespace)


def summarize(report: SyncReport) -> str:
    """Human-readable outcome distinguishing full, partial and empty runs."""
    total_files = report.total_files
    total_chunks = report.total_chunks
    if total_files == 0:
        return "No files found in the folder"
    if total_chunks == 0:
        return (
            f"No chunks were created. {total_files} file(s) processed but no valid chunks found. "
            "Check file types and content."
        )
    failed = sum(1 for item in report.processed_files if item.error)
    if failed == 0:
        return f"Successfully processed {total_files} file(s) and created {total_chunks} chunk(s) in the index."
    return (
        f"Partially successful: {total_files - failed} of {total_files} file(s) indexed with "
        f"{total_chunks} chunk(s); {failed} file(s) failed or produced no chunks."
    )


__all__ = ["IngestPipeline", "summarize", "EMPTY_FILE_ERROR", "NO_TEXT_ERROR", "NO_CHUNKS_ERROR"]
