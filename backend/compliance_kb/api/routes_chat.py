"""Chat routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from compliance_kb.api.dependencies import get_chat_service
from compliance_kb.chat.service import ChatService
from compliance_kb.models.dto import ChatRequest, ChatResponse

router = APIRouter()


@router.post("/chat", response_model=ChatResponse, summary="Answer a question from the knowledge base")
def chat(request: ChatRequest, service: ChatService = Depends(get_chat_service)) -> dict[str, Any]:
    history = [turn.model_dump() for turn in request.history]
    return service.reply(request.message, history)
