"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CKB_"
DEFAULT_CONFIG_PATH = Path("~/.config/compliance-kb/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("chat", "model"): "chat_model",
    ("chat", "temperature"): "chat_temperature",
    ("chat", "max_tokens"): "chat_max_tokens",
    ("vector_store", "backend"): "vector_backend",
    ("vector_store", "index_name"): "pinecone_index_name",
    ("vector_store", "namespace"): "pinecone_namespace",
    ("vector_store", "upsert_batch_size"): "upsert_batch_size",
    ("chunking", "min_length"): "chunk_min_length",
    ("chunking", "window_size"): "chunk_window_size",
    ("retrieval", "context_top_k"): "context_top_k",
    ("retrieval", "preview_top_k"): "preview_top_k",
    ("crawler", "max_depth"): "crawl_max_depth",
    ("crawler", "max_pdfs"): "crawl_max_pdfs",
    ("crawler", "timeout_seconds"): "crawl_timeout_seconds",
    ("crawler", "max_redirects"): "crawl_max_redirects",
    ("ingest", "workers"): "ingest_workers",
    ("google_drive", "folder_id"): "google_drive_folder_id",
}

# Conventional variable names used by the hosted deployment.
_PLAIN_ENV_MAP: Mapping[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "PINECONE_API_KEY": "pinecone_api_key",
    "PINECONE_INDEX_NAME": "pinecone_index_name",
    "GOOGLE_DRIVE_FOLDER_ID": "google_drive_folder_id",
    "GOOGLE_DRIVE_ACCESS_TOKEN": "google_drive_access_token",
    "GOOGLE_API_KEY": "google_api_key",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    embedding_backend: Literal["openai", "hashed"] = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dim: int = Field(default=1536, ge=8)

    chat_model: str = "gpt-4o-mini"
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    chat_max_tokens: int = 4000

    vector_backend: Literal["pinecone", "memory"] = "pinecone"
    pinecone_index_name: str = "adacompliance-index"
    pinecone_namespace: str | None = None
    upsert_batch_size: int = Field(default=100, ge=1, le=1000)

    chunk_min_length: int = Field(default=20, ge=0)
    chunk_window_size: int = Field(default=500, ge=1)

    context_top_k: int = Field(default=5, ge=1)
    preview_top_k: int = Field(default=500, ge=1)

    crawl_max_depth: int = Field(default=3, ge=0)
    crawl_max_pdfs: int = Field(default=100, ge=1)
    crawl_timeout_seconds: float = 10.0
    crawl_max_redirects: int = 5
    crawl_user_agent: str = "Mozilla/5.0 (compatible; ADA Compliance PDF Link Scanner)"

    analyzer_timeout_seconds: float = 30.0
    analyzer_user_agent: str = "Mozilla/5.0 (compatible; ADA Compliance PDF Analyzer)"
    max_upload_files: int = 10
    max_url_batch: int = 100

    ingest_workers: int = Field(default=1, ge=1, le=16)

    google_drive_folder_id: str | None = None
    google_drive_access_token: str | None = None
    google_api_key: str | None = None

    openai_api_key: str | None = None
    pinecone_api_key: str | None = None

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("pinecone_namespace", "google_drive_folder_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map conventional secrets and CKB_-prefixed variables into Settings fields.

    Prefixed variables win over the conventional names.
    """
    overrides: dict[str, Any] = {}
    for env_key, field_name in _PLAIN_ENV_MAP.items():
        value = os.environ.get(env_key)
        if value:
            overrides[field_name] = value
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
