"""Chatbot endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from auth import get_current_user
from errors import UpstreamError, ValidationError
from schemas.auth import UserOut
from schemas.chat import ChatHistoryResponse, ChatMessageRequest, ChatReplyResponse
from services.chat import ChatService, get_chat_service

router = APIRouter()


@router.get("/history", response_model=ChatHistoryResponse)
async def chat_history(
    user: UserOut = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
):
    return {"history": chat.get_history(user.id)}


@router.post(
    "/message",
    response_model=ChatReplyResponse,
    responses={
        400: {"description": "Message text is required"},
        500: {"description": "Chat model call failed"},
    },
)
async def chat_message(
    payload: ChatMessageRequest,
    user: UserOut = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
):
    try:
        reply = await chat.send_message(user.id, payload.text)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except UpstreamError as exc:
        raise HTTPException(status_code=500, detail=exc.message)
    return {"reply": reply}
