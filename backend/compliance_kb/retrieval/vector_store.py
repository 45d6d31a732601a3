"""Vector store clients.

Both clients upsert ``(id, values, metadata)`` records into an optional
namespace, overwriting entries with the same id, and answer nearest-neighbour
queries ordered by descending score.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol, Sequence

from pinecone import Pinecone

from compliance_kb.core.errors import ConfigurationError, ExternalServiceError
from compliance_kb.core.metrics import VECTORS_UPSERTED

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = ""


@dataclass(slots=True)
class VectorRecord:
    id: str
    values: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "values": self.values, "metadata": self.metadata}


@dataclass(slots=True)
class Match:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


class VectorStore(Protocol):
    backend: str

    def upsert(self, records: Sequence[VectorRecord], namespace: str | None = None) -> int: ...

    def query(self, vector: Sequence[float], top_k: int, namespace: str | None = None) -> list[Match]: ...


class InMemoryVectorStore:
    """Process-local vector store using cosine similarity."""

    backend = "memory"

    def __init__(self, dim: int) -> None:
        self.dim = dim
        self._spaces: dict[str, dict[str, VectorRecord]] = {}

    def size(self, namespace: str | None = None) -> int:
        return len(self._spaces.get(namespace or DEFAULT_NAMESPACE, {}))

    def upsert(self, records: Sequence[VectorRecord], namespace: str | None = None) -> int:
        if not records:
            return 0
        for record in records:
            if len(record.values) != self.dim:
                raise ConfigurationError(
                    f"Vector dimension mismatch: index expects {self.dim}, got {len(record.values)}"
                )
        space = self._spaces.setdefault(namespace or DEFAULT_NAMESPACE, {})
        for record in records:
            space[record.id] = VectorRecord(record.id, list(record.values), dict(record.metadata))
        VECTORS_UPSERTED.labels(backend=self.backend).inc(len(records))
        return len(records)

    def query(self, vector: Sequence[float], top_k: int, namespace: str | None = None) -> list[Match]:
        space = self._spaces.get(namespace or DEFAULT_NAMESPACE)
        if not space:
            return []
        if len(vector) != self.dim:
            raise ConfigurationError(f"Query vector dimension mismatch: expected {self.dim}, got {len(vector)}")
        scored = [
            Match(id=record.id, score=_cosine(record.values, vector), metadata=dict(record.metadata))
            for record in space.values()
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[: max(0, top_k)]


class PineconeVectorStore:
    """Thin wrapper over a Pinecone index.

    Configuration is validated once when the client is constructed; upserts
    are sent in slices of ``batch_size`` records.
    """

    backend = "pinecone"

    def __init__(
        self,
        api_key: str | None,
        index_name: str | None,
        batch_size: int = 100,
        default_namespace: str | None = None,
        dim: int | None = None,
        client: Pinecone | None = None,
    ) -> None:
        if not api_key or not index_name:
            raise ConfigurationError("Pinecone API key and index name must be set", provider_name="pinecone")
        self.index_name = index_name
        self.batch_size = batch_size
        self.default_namespace = default_namespace
        self._client = client or Pinecone(api_key=api_key)
        self._index = self._client.Index(index_name)
        self.dim = dim
        if dim is not None:
            index_dim = self._index_dimension()
            if index_dim is not None and index_dim != dim:
                raise ConfigurationError(
                    f"Vector dimension mismatch: index {index_name} expects {index_dim}, embedder produces {dim}",
                    provider_name="pinecone",
                )

    def _index_dimension(self) -> int | None:
        try:
            stats = self._index.describe_index_stats()
        except Exception as exc:
            raise ExternalServiceError(f"Failed to describe Pinecone index: {exc}", provider_name="pinecone") from exc
        value = stats.get("dimension") if isinstance(stats, dict) else getattr(stats, "dimension", None)
        return int(value) if value else None

    def upsert(self, records: Sequence[VectorRecord], namespace: str | None = None) -> int:
        if not records:
            return 0
        if self.dim is not None:
            for record in records:
                if len(record.values) != self.dim:
                    raise ConfigurationError(
                        f"Vector dimension mismatch: index expects {self.dim}, got {len(record.values)}",
                        provider_name="pinecone",
                    )
        target = namespace or self.default_namespace
        logger.info(
            "Upserting %s vector(s) to Pinecone index %s",
            len(records),
            self.index_name,
            extra={"ctx_namespace": target or DEFAULT_NAMESPACE, "ctx_dim": len(records[0].values)},
        )
        written = 0
        for batch in _batched(records, self.batch_size):
            kwargs: dict[str, Any] = {"vectors": [record.to_dict() for record in batch]}
            if target:
                kwargs["namespace"] = target
            try:
                self._index.upsert(**kwargs)
            except Exception as exc:
                raise ExternalServiceError(f"Failed to upsert to Pinecone: {exc}", provider_name="pinecone") from exc
            written += len(batch)
            VECTORS_UPSERTED.labels(backend=self.backend).inc(len(batch))
        return written

    def query(self, vector: Sequence[float], top_k: int, namespace: str | None = None) -> list[Match]:
        kwargs: dict[str, Any] = {"vector": list(vector), "top_k": top_k, "include_metadata": True}
        target = namespace or self.default_namespace
        if target:
            kwargs["namespace"] = target
        try:
            response = self._index.query(**kwargs)
        except Exception as exc:
            raise ExternalServiceError(f"Pinecone query failed: {exc}", provider_name="pinecone") from exc
        matches = getattr(response, "matches", None) or []
        return [
            Match(id=item.id, score=float(item.score or 0.0), metadata=dict(item.metadata or {}))
            for item in matches
        ]


def _batched(records: Sequence[VectorRecord], size: int) -> Iterator[Sequence[VectorRecord]]:
    for start in range(0, len(records), size):
        yield records[start : start + size]


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


__all__ = [
    "VectorRecord",
    "Match",
    "VectorStore",
    "InMemoryVectorStore",
    "PineconeVectorStore",
    "DEFAULT_NAMESPACE",
]
