"""ID helpers."""

from __future__ import annotations

import uuid


def new_id(prefix: str | None = None) -> str:
    """Generate a random UUID4 string with optional prefix."""
    base = uuid.uuid4().hex
    return f"{prefix}_{base}" if prefix else base


def chunk_id(file_id: str, chunk_index: int) -> str:
    """Deterministic vector id for one chunk of a file.

    Re-ingesting a file overwrites its previous vectors by id as long as the
    chunk boundaries are unchanged.
    """
    return f"{file_id}-chunk-{chunk_index}"
