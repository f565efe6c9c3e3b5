"""Per-user chat transcripts kept in process memory."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timezone
from typing import Protocol

from schemas.chat import ChatMessage


class TranscriptStore(Protocol):
    def get_history(self, user_id: int) -> list[ChatMessage]: ...

    def append_message(self, user_id: int, message: ChatMessage) -> None: ...

    def append_turn(self, user_id: int, messages: Sequence[ChatMessage], generation: int) -> bool: ...

    def last_seen(self, user_id: int) -> datetime | None: ...

    def clear(self, user_id: int) -> None: ...

    def turn(self, user_id: int) -> AbstractAsyncContextManager[int]: ...


class _TurnSlot:
    """Per-user turn lock, shared by everyone holding or waiting on it."""

    __slots__ = ("lock", "users", "generation")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0
        self.generation = 0


class InMemoryTranscriptStore:
    """Ordered message log per user id, lost on restart.

    ``_lock`` guards every dict. ``turn(user_id)`` serialises chat turns for
    one user and yields the generation seen when the turn was entered;
    ``clear`` bumps it, and ``append_turn`` refuses to write a turn that was
    queued or in flight when the transcript was cleared. A slot lives only
    while some turn holds or waits on it.
    """

    def __init__(self):
        self._logs: dict[int, list[ChatMessage]] = {}
        self._last_seen: dict[int, datetime] = {}
        self._turns: dict[int, _TurnSlot] = {}
        self._lock = threading.Lock()

    def get_history(self, user_id: int) -> list[ChatMessage]:
        with self._lock:
            return list(self._logs.get(user_id, ()))

    def append_message(self, user_id: int, message: ChatMessage) -> None:
        with self._lock:
            self._append(user_id, (message,))

    def append_turn(self, user_id: int, messages: Sequence[ChatMessage], generation: int) -> bool:
        """Append *messages* together, unless the transcript was cleared since *generation*."""
        with self._lock:
            slot = self._turns.get(user_id)
            if slot is not None and slot.generation != generation:
                return False
            self._append(user_id, messages)
            return True

    def _append(self, user_id: int, messages) -> None:
        self._logs.setdefault(user_id, []).extend(messages)
        self._last_seen[user_id] = datetime.now(timezone.utc)

    def last_seen(self, user_id: int) -> datetime | None:
        with self._lock:
            return self._last_seen.get(user_id)

    def clear(self, user_id: int) -> None:
        with self._lock:
            self._logs.pop(user_id, None)
            self._last_seen.pop(user_id, None)
            slot = self._turns.get(user_id)
            if slot is not None:
                slot.generation += 1

    def active_turns(self) -> int:
        with self._lock:
            return len(self._turns)

    @asynccontextmanager
    async def turn(self, user_id: int) -> AsyncIterator[int]:
        with self._lock:
            slot = self._turns.get(user_id)
            if slot is None:
                slot = self._turns[user_id] = _TurnSlot()
            slot.users += 1
            generation = slot.generation
        try:
            async with slot.lock:
                yield generation
        finally:
            with self._lock:
                slot.users -= 1
                if slot.users == 0:
                    del self._turns[user_id]


transcript_store = InMemoryTranscriptStore()
