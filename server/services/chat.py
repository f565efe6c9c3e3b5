"""Chat orchestration — prompt building, model call, transcript update."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from config import settings
from errors import UpstreamError, ValidationError
from schemas.chat import ChatMessage
from services.llm import create_llm_from_settings
from services.transcripts import TranscriptStore, transcript_store

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTIONS = (
    "You are a helpful academic stress management chatbot. Follow these rules:",
    "- Respond conversationally",
    "- Offer practical advice",
    "- Be empathetic and supportive",
    "- Keep responses under 500 characters",
)


def build_prompt(history: Sequence[ChatMessage], max_messages: int = 0) -> str:
    """Render the system instructions followed by the last *max_messages* turns."""
    if max_messages > 0:
        history = history[-max_messages:]
    lines = [*SYSTEM_INSTRUCTIONS, "Current conversation:"]
    lines.extend(f"{m.sender}: {m.text}" for m in history)
    return "\n".join(lines)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _response_text(response) -> str:
    content = response.content
    if isinstance(content, list):
        content = "".join(
            part if isinstance(part, str) else part.get("text", "")
            for part in content
        )
    return content.strip()


class ChatService:
    def __init__(
        self,
        store: TranscriptStore,
        llm: BaseChatModel | None = None,
        llm_factory: Callable[[], BaseChatModel] = create_llm_from_settings,
    ):
        self.store = store
        self._llm = llm
        self._llm_factory = llm_factory
        self._llm_lock = threading.Lock()

    @property
    def llm(self) -> BaseChatModel:
        # Built on first use so the app can start without provider credentials
        if self._llm is None:
            with self._llm_lock:
                if self._llm is None:
                    self._llm = self._llm_factory()
        return self._llm

    def get_history(self, user_id: int) -> list[ChatMessage]:
        return self.store.get_history(user_id)

    def clear(self, user_id: int) -> None:
        self.store.clear(user_id)

    async def send_message(self, user_id: int, text) -> ChatMessage:
        """Run one chat turn and return the bot's reply.

        Turns for the same user are serialised. Both messages are appended only
        once the model has answered, so a failed turn leaves the transcript as
        it was. If the transcript is cleared (logout, account deletion) while
        the turn is queued or waiting on the model, the reply is still returned
        but not stored.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Message text is required")

        async with self.store.turn(user_id) as generation:
            user_msg = ChatMessage(sender="user", text=text, timestamp=_timestamp())
            history = [*self.store.get_history(user_id), user_msg]
            prompt = build_prompt(history, settings.CHAT_CONTEXT_MAX_MESSAGES)

            try:
                response = await asyncio.wait_for(
                    self.llm.ainvoke([HumanMessage(content=prompt)]),
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                )
                reply_text = _response_text(response)
                if not reply_text:
                    raise ValueError("Model returned an empty reply")
            except Exception as exc:
                logger.exception("Chat turn failed for user %d", user_id)
                raise UpstreamError("Failed to process chat message") from exc

            bot_msg = ChatMessage(sender="bot", text=reply_text, timestamp=_timestamp())
            # Appended as a pair: a failed turn keeps neither message, not even the user's
            stored = self.store.append_turn(user_id, (user_msg, bot_msg), generation)

        if stored:
            logger.debug("User %d transcript now %d messages", user_id, len(history) + 1)
        else:
            logger.info("Transcript for user %d was cleared mid-turn; reply not kept", user_id)
        return bot_msg


chat_service = ChatService(transcript_store)


def get_chat_service() -> ChatService:
    """FastAPI dependency returning the process-wide chat service."""
    return chat_service
