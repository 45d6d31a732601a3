"""Retrieval-augmented chat over the knowledge base."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from compliance_kb.chat.llm import ChatModel
from compliance_kb.core.errors import ValidationError
from compliance_kb.retrieval.search import QueryService, build_sources

logger = logging.getLogger(__name__)

_HISTORY_ROLES = {"user", "assistant"}


class ChatService:
    def __init__(self, llm: ChatModel, query_service: QueryService) -> None:
        self.llm = llm
        self.query_service = query_service

    def reply(self, message: str, history: Sequence[Mapping[str, str]] = ()) -> dict[str, Any]:
        if not message or not message.strip():
            raise ValidationError("Message is required")

        retrieved = self.query_service.retrieve_context(message)
        messages = [
            {"role": item["role"], "content": item.get("content", "")}
            for item in history
            if item.get("role") in _HISTORY_ROLES
        ]
        messages.append({"role": "user", "content": message})

        response = self.llm.complete(messages, context=retrieved.context or None)
        logger.info(
            "Answered chat message",
            extra={"ctx_matches": len(retrieved.sources), "ctx_confidence": retrieved.confidence},
        )
        return {
            "response": response.replace("**", ""),
            "contextUsed": retrieved.context_used,
            "sources": build_sources(retrieved.sources),
            "confidenceScore": retrieved.confidence,
        }


__all__ = ["ChatService"]
