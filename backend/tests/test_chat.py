"""Tests for the chat layer."""

from __future__ import annotations

from types import SimpleNamespace
from unittest import mock

import openai
import pytest

from compliance_kb.chat.llm import ADVISOR_PROMPT, OpenAIChatModel, build_messages
from compliance_kb.chat.service import ChatService
from compliance_kb.core.errors import ConfigurationError, ExternalServiceError, ValidationError
from compliance_kb.ingest.embeddings import HashedEmbedder
from compliance_kb.retrieval import InMemoryVectorStore, QueryService, VectorRecord

from conftest import FakeChatModel


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_build_messages_adds_context_prompt() -> None:
    messages = build_messages([{"role": "user", "content": "hi"}], context="[Doc]: ramps")
    assert messages[0]["role"] == "system"
    assert "[Doc]: ramps" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "hi"}


def test_build_messages_preserves_caller_system_prompt() -> None:
    custom = [{"role": "system", "content": "Fill the template"}, {"role": "user", "content": "go"}]
    assert build_messages(custom, preserve_system_message=True) == custom
    replaced = build_messages(custom)
    assert replaced[0] == {"role": "system", "content": ADVISOR_PROMPT}
    assert len(replaced) == 3


def test_openai_chat_model_call_arguments() -> None:
    client = mock.Mock()
    client.chat.completions.create.return_value = _completion("answer")
    model = OpenAIChatModel(api_key=None, client=client)
    assert model.complete([{"role": "user", "content": "q"}], temperature=0.3) == "answer"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["max_tokens"] == 4000
    assert kwargs["temperature"] == 0.3


def test_openai_chat_model_errors() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIChatModel(api_key=None)
    client = mock.Mock()
    client.chat.completions.create.side_effect = openai.OpenAIError("quota")
    with pytest.raises(ExternalServiceError):
        OpenAIChatModel(api_key=None, client=client).complete([{"role": "user", "content": "q"}])


def test_reply_strips_bold_and_reports_sources() -> None:
    embedder = HashedEmbedder(dim=64)
    store = InMemoryVectorStore(dim=64)
    text = "Ramps need a maximum slope of one to twelve"
    store.upsert(
        [VectorRecord("f-chunk-3", embedder.embed(text), {"fileId": "f", "title": "Ramps", "text": text, "chunkIndex": 3})]
    )
    llm = FakeChatModel("**Slope** is 1:12")
    service = ChatService(llm, QueryService(store, embedder))

    payload = service.reply("What slope do ramps need?", [{"role": "assistant", "content": "Hello"}])
    assert payload["response"] == "Slope is 1:12"
    assert payload["contextUsed"] is True
    assert payload["sources"][0]["chunkIndex"] == 3
    assert payload["confidenceScore"] == payload["sources"][0]["score"]
    assert llm.calls[0]["context"] == f"[Ramps]: {text}"
    assert [msg["role"] for msg in llm.calls[0]["messages"]] == ["assistant", "user"]


def test_reply_without_matches() -> None:
    embedder = HashedEmbedder(dim=64)
    llm = FakeChatModel("general answer")
    payload = ChatService(llm, QueryService(InMemoryVectorStore(dim=64), embedder)).reply("hi")
    assert payload == {"response": "general answer", "contextUsed": False, "sources": [], "confidenceScore": 0.0}
    assert llm.calls[0]["context"] is None


def test_reply_requires_message() -> None:
    service = ChatService(FakeChatModel(), mock.Mock())
    with pytest.raises(ValidationError):
        service.reply("  ")
