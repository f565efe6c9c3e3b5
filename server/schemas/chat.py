"""Chat schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class ChatMessage(BaseModel):
    sender: Literal["user", "bot"]
    text: str
    timestamp: str


class ChatMessageRequest(BaseModel):
    # Type-checked by ChatService so non-string payloads get the same 400 as blank ones
    text: Any = None


class ChatHistoryResponse(BaseModel):
    history: list[ChatMessage]


class ChatReplyResponse(BaseModel):
    reply: ChatMessage
