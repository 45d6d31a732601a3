"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from compliance_kb.chat.llm import ChatModel, OpenAIChatModel
from compliance_kb.chat.service import ChatService
from compliance_kb.compliance.analyzer import ComplianceAnalyzer
from compliance_kb.core.config import Settings, get_settings
from compliance_kb.discovery.crawler import PdfLinkCrawler
from compliance_kb.ingest.embeddings import Embedder, clear_embedders, get_embedder
from compliance_kb.ingest.extractors import ExtractorRegistry
from compliance_kb.ingest.pipeline import IngestPipeline
from compliance_kb.ingest.sources import GoogleDriveSource
from compliance_kb.retrieval import InMemoryVectorStore, PineconeVectorStore, QueryService, VectorStore

_VECTOR_STORE: VectorStore | None = None
_EXTRACTORS: ExtractorRegistry | None = None
_PIPELINE: IngestPipeline | None = None
_QUERY_SERVICE: QueryService | None = None
_CHAT_MODEL: ChatModel | None = None
_CHAT_SERVICE: ChatService | None = None
_ANALYZER: ComplianceAnalyzer | None = None
_CRAWLER: PdfLinkCrawler | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_embedding_model() -> Embedder:
    return get_embedder(get_app_settings())


def get_vector_store() -> VectorStore:
    global _VECTOR_STORE
    if _VECTOR_STORE is None:
        settings = get_app_settings()
        if settings.vector_backend == "memory":
            _VECTOR_STORE = InMemoryVectorStore(dim=get_embedding_model().dim)
        else:
            _VECTOR_STORE = PineconeVectorStore(
                api_key=settings.pinecone_api_key,
                index_name=settings.pinecone_index_name,
                batch_size=settings.upsert_batch_size,
                default_namespace=settings.pinecone_namespace,
                dim=get_embedding_model().dim,
            )
    return _VECTOR_STORE


def get_extractors() -> ExtractorRegistry:
    global _EXTRACTORS
    if _EXTRACTORS is None:
        _EXTRACTORS = ExtractorRegistry()
    return _EXTRACTORS


def get_ingest_pipeline() -> IngestPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = IngestPipeline(
            settings=get_app_settings(),
            embedder=get_embedding_model(),
            vector_store=get_vector_store(),
            extractors=get_extractors(),
        )
    return _PIPELINE


def get_query_service() -> QueryService:
    global _QUERY_SERVICE
    if _QUERY_SERVICE is None:
        settings = get_app_settings()
        _QUERY_SERVICE = QueryService(
            vector_store=get_vector_store(),
            embedder=get_embedding_model(),
            context_top_k=settings.context_top_k,
            preview_top_k=settings.preview_top_k,
            namespace=settings.pinecone_namespace,
        )
    return _QUERY_SERVICE


def get_chat_model() -> ChatModel:
    global _CHAT_MODEL
    if _CHAT_MODEL is None:
        settings = get_app_settings()
        _CHAT_MODEL = OpenAIChatModel(
            api_key=settings.openai_api_key,
            model_name=settings.chat_model,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
        )
    return _CHAT_MODEL


def get_chat_service() -> ChatService:
    global _CHAT_SERVICE
    if _CHAT_SERVICE is None:
        _CHAT_SERVICE = ChatService(llm=get_chat_model(), query_service=get_query_service())
    return _CHAT_SERVICE


def get_analyzer() -> ComplianceAnalyzer:
    global _ANALYZER
    if _ANALYZER is None:
        settings = get_app_settings()
        _ANALYZER = ComplianceAnalyzer(
            llm=get_chat_model(),
            query_service=get_query_service(),
            extractors=get_extractors(),
            timeout=settings.analyzer_timeout_seconds,
            max_redirects=settings.crawl_max_redirects,
            user_agent=settings.analyzer_user_agent,
            max_upload_files=settings.max_upload_files,
            max_url_batch=settings.max_url_batch,
        )
    return _ANALYZER


def get_crawler() -> PdfLinkCrawler:
    global _CRAWLER
    if _CRAWLER is None:
        settings = get_app_settings()
        _CRAWLER = PdfLinkCrawler(
            timeout=settings.crawl_timeout_seconds,
            max_redirects=settings.crawl_max_redirects,
            user_agent=settings.crawl_user_agent,
        )
    return _CRAWLER


def get_drive_source() -> GoogleDriveSource:
    """Built per request so rotated access tokens are picked up."""
    settings = get_app_settings()
    return GoogleDriveSource(
        access_token=settings.google_drive_access_token,
        api_key=settings.google_api_key,
    )


def reset_dependencies() -> None:
    """Drop cached singletons; used by tests and after config changes."""
    global _VECTOR_STORE, _EXTRACTORS, _PIPELINE, _QUERY_SERVICE, _CHAT_MODEL, _CHAT_SERVICE, _ANALYZER, _CRAWLER
    _VECTOR_STORE = _EXTRACTORS = _PIPELINE = _QUERY_SERVICE = None
    _CHAT_MODEL = _CHAT_SERVICE = _ANALYZER = _CRAWLER = None
    get_app_settings.cache_clear()
    clear_embedders()


__all__ = [
    "get_app_settings",
    "get_embedding_model",
    "get_vector_store",
    "get_extractors",
    "get_ingest_pipeline",
    "get_query_service",
    "get_chat_model",
    "get_chat_service",
    "get_analyzer",
    "get_crawler",
    "get_drive_source",
    "reset_dependencies",
]
