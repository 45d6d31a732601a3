"""OpenAI chat completion client with the advisor system prompt."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol, Sequence

import openai

from compliance_kb.core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

Message = Mapping[str, str]

ADVISOR_PROMPT = (
    "You are an intelligent advisor for ADA Compliance transformation. Provide helpful, "
    "accurate information about project management and ADA compliance."
)
ADVISOR_CONTEXT_PROMPT = (
    "You are an intelligent advisor for ADA Compliance transformation. Use the following context "
    "from the knowledge base to answer questions accurately and helpfully:\n\n{context}\n\n"
    "If the context doesn't contain relevant information, use your general knowledge but "
    "indicate when you're doing so."
)


class ChatModel(Protocol):
    def complete(
        self,
        messages: Sequence[Message],
        context: str | None = None,
        temperature: float | None = None,
        preserve_system_message: bool = False,
    ) -> str: ...


def build_messages(
    messages: Sequence[Message],
    context: str | None = None,
    preserve_system_message: bool = False,
) -> list[dict[str, str]]:
    """Prepend the advisor system prompt unless the caller supplied its own and asked to keep it."""
    payload = [{"role": msg["role"], "content": msg["content"]} for msg in messages]
    has_system = any(msg["role"] == "system" for msg in payload)
    if has_system and preserve_system_message:
        return payload
    system = ADVISOR_CONTEXT_PROMPT.format(context=context) if context else ADVISOR_PROMPT
    return [{"role": "system", "content": system}, *payload]


class OpenAIChatModel:
    def __init__(
        self,
        api_key: str | None,
        model_name: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 4000,
        client: openai.OpenAI | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ConfigurationError("OpenAI API key must be set", provider_name="openai")
            client = openai.OpenAI(api_key=api_key)
        self._client = client
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(
        self,
        messages: Sequence[Message],
        context: str | None = None,
        temperature: float | None = None,
        preserve_system_message: bool = False,
    ) -> str:
        payload = build_messages(messages, context, preserve_system_message)
        try:
            response = self._client.chat.completions.create(
                model=self.model_name,
                messages=payload,
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=self.max_tokens,
            )
        except openai.OpenAIError as exc:
            raise ExternalServiceError(f"Chat completion failed: {exc}", provider_name="openai") from exc
        if not response.choices:
            logger.warning("Chat completion returned no choices", extra={"ctx_model": self.model_name})
            return ""
        return response.choices[0].message.content or ""


__all__ = ["ChatModel", "OpenAIChatModel", "build_messages", "ADVISOR_PROMPT", "ADVISOR_CONTEXT_PROMPT"]
