"""Embedding backends.

Two implementations share the ``encode``/``embed`` surface:

* ``OpenAIEmbedder`` calls the OpenAI embeddings API (``text-embedding-3-small``,
  1536 dimensions by default).
* ``HashedEmbedder`` is a deterministic hashed bag-of-words model that needs no
  network access; it backs local development and the test-suite.

Instances are cached per ``(backend, model, dim)`` and reused for the life of
the process.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

import openai

from compliance_kb.core.config import Settings
from compliance_kb.core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

# Known output sizes; anything else must be configured explicitly.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


@dataclass(slots=True)
class EmbeddingBatch:
    vectors: list[list[float]]
    model: str
    dim: int
    backend: str


class Embedder(Protocol):
    @property
    def dim(self) -> int: ...

    @property
    def model_name(self) -> str: ...

    def embed(self, text: str) -> list[float]: ...

    def encode(self, texts: Iterable[str]) -> EmbeddingBatch: ...


class HashedEmbedder:
    """Lightweight hashed embedding model with deterministic output."""

    backend = "hashed"

    def __init__(self, model_name: str = "hashed", dim: int = 384) -> None:
        self.model_name = model_name
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        tokens = _tokenize(text)
        vector = [0.0] * self._dim
        for token in tokens:
            vector[_hash_token(token, self._dim)] += 1.0
        _normalize(vector)
        return vector

    def encode(self, texts: Iterable[str]) -> EmbeddingBatch:
        vectors = [self.embed(text) for text in texts]
        return EmbeddingBatch(vectors=vectors, model=self.model_name, dim=self._dim, backend=self.backend)


class OpenAIEmbedder:
    """Embedding client backed by the OpenAI embeddings endpoint."""

    backend = "openai"

    def __init__(self, api_key: str | None, model_name: str = "text-embedding-3-small", dim: int | None = None) -> None:
        if not api_key:
            raise ConfigurationError("OpenAI API key must be set", provider_name="openai")
        self.model_name = model_name
        self._dim = dim or _MODEL_DIMENSIONS.get(model_name, 1536)
        self._client = openai.OpenAI(api_key=api_key)

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        """Embed a single text; any API failure is fatal for that text."""
        return self._create([text])[0]

    def encode(self, texts: Iterable[str]) -> EmbeddingBatch:
        items = list(texts)
        vectors = self._create(items) if items else []
        return EmbeddingBatch(vectors=vectors, model=self.model_name, dim=self._dim, backend=self.backend)

    def _create(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embeddings.create(model=self.model_name, input=texts)
        except openai.OpenAIError as exc:
            raise ExternalServiceError(f"Embedding request failed: {exc}", provider_name="openai") from exc
        vectors = [list(item.embedding) for item in response.data]
        if len(vectors) != len(texts):
            raise ExternalServiceError(
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
                provider_name="openai",
            )
        for vector in vectors:
            if len(vector) != self._dim:
                raise ConfigurationError(
                    f"Model {self.model_name} returned {len(vector)} dimensions, expected {self._dim}",
                    provider_name="openai",
                )
        return vectors


_instances: dict[tuple[str, str, int], Embedder] = {}


def get_embedder(settings: Settings) -> Embedder:
    """Return the process-wide embedder for the configured backend."""
    dim = settings.embedding_dim
    if settings.embedding_backend == "openai":
        dim = _MODEL_DIMENSIONS.get(settings.embedding_model, settings.embedding_dim)
    key = (settings.embedding_backend, settings.embedding_model, dim)
    if key not in _instances:
        if settings.embedding_backend == "hashed":
            _instances[key] = HashedEmbedder(model_name=settings.embedding_model, dim=dim)
        else:
            _instances[key] = OpenAIEmbedder(settings.openai_api_key, settings.embedding_model, dim)
        logger.info("Initialized %s embedder %s (dim=%s)", settings.embedding_backend, settings.embedding_model, dim)
    return _instances[key]


def clear_embedders() -> None:
    _instances.clear()


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "Embedder",
    "EmbeddingBatch",
    "HashedEmbedder",
    "OpenAIEmbedder",
    "get_embedder",
    "clear_embedders",
]
