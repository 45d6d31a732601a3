"""Tests for embedding utilities."""

import pytest

from compliance_kb.core.config import Settings
from compliance_kb.core.errors import ConfigurationError
from compliance_kb.ingest.embeddings import HashedEmbedder, OpenAIEmbedder, get_embedder


def test_hashed_embedder_is_normalized() -> None:
    model = HashedEmbedder(dim=64)
    vectors = model.encode(["hello", "world"]).vectors
    assert len(vectors) == 2
    assert all(len(vec) == model.dim for vec in vectors)
    assert abs(sum(value * value for value in vectors[0]) - 1.0) < 1e-6
    assert model.embed("hello") == vectors[0]


def test_get_embedder_caches_instances() -> None:
    settings = Settings(embedding_backend="hashed", embedding_model="hashed", embedding_dim=32)
    assert get_embedder(settings) is get_embedder(settings)
    assert get_embedder(settings).dim == 32


def test_openai_embedder_requires_key() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIEmbedder(api_key=None)
