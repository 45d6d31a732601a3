"""Test fixtures for the compliance knowledge base."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

_EXTERNAL_ENV = (
    "OPENAI_API_KEY",
    "PINECONE_API_KEY",
    "PINECONE_INDEX_NAME",
    "GOOGLE_DRIVE_FOLDER_ID",
    "GOOGLE_DRIVE_ACCESS_TOKEN",
    "GOOGLE_API_KEY",
)


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run against local backends and reset global singletons between tests."""
    for key in _EXTERNAL_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("CKB_CONFIG", raising=False)
    monkeypatch.setenv("CKB_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("CKB_EMBEDDING_MODEL", "hashed")
    monkeypatch.setenv("CKB_EMBEDDING_DIM", "256")
    monkeypatch.setenv("CKB_VECTOR_BACKEND", "memory")

    from compliance_kb.api import dependencies as deps
    from compliance_kb.core.config import get_settings

    get_settings.cache_clear()
    deps.reset_dependencies()
    yield
    get_settings.cache_clear()
    deps.reset_dependencies()


class FakeChatModel:
    """Chat model double that records prompts and replays canned answers."""

    def __init__(self, answers: Sequence[str] | str = "") -> None:
        self.answers = [answers] if isinstance(answers, str) else list(answers)
        self.calls: list[dict[str, Any]] = []

    def complete(
        self,
        messages: Sequence[dict[str, str]],
        context: str | None = None,
        temperature: float | None = None,
        preserve_system_message: bool = False,
    ) -> str:
        self.calls.append({"messages": list(messages), "context": context, "temperature": temperature})
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0] if self.answers else ""


@pytest.fixture
def fake_llm() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture(scope="session")
def sample_text() -> str:
    return (
        "Accessible documents need tagged headings and a logical reading order.\n\n"
        "Every image must carry alternative text that describes its purpose.\n\n"
        "Colour contrast between text and background must be at least 4.5 to 1."
    )
