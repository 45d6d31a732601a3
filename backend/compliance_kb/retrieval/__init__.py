"""Retrieval components: vector store clients and read paths."""

from .vector_store import InMemoryVectorStore, Match, PineconeVectorStore, VectorRecord, VectorStore
from .search import ContextResult, QueryService, Reconstruction

__all__ = [
    "VectorStore",
    "VectorRecord",
    "Match",
    "InMemoryVectorStore",
    "PineconeVectorStore",
    "QueryService",
    "ContextResult",
    "Reconstruction",
]
