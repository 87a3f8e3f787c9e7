"""Conversation memory: ordered message history, one store per conversation."""

import asyncio
import logging
import uuid
from typing import (
    Dict,
    List,
    Protocol,
    Tuple,
    runtime_checkable,
)

from ponder.core.schema import Message

logger = logging.getLogger(__name__)


@runtime_checkable
class MemoryStore(Protocol):
    """Ordered conversation history, appendable and retrievable."""

    async def history(self) -> Tuple[Message, ...]:
        """Return a snapshot of the history; mutating it must not affect the store."""

    async def append(self, *messages: Message) -> None:
        """Append *messages* contiguously, in the given order."""

    async def clear(self) -> None:
        """Forget every message."""


class InMemoryStore:
    """
    List-backed :class:`MemoryStore`.

    Appends are serialized with an ``asyncio.Lock`` (FIFO), so concurrent callers driving the same
    conversation land in call order and the messages of one ``append`` call are never interleaved
    with another's.
    """

    def __init__(self, messages: List[Message] | None = None):
        self._messages: List[Message] = list(messages or [])
        self._lock = asyncio.Lock()

    async def history(self) -> Tuple[Message, ...]:
        # Messages are frozen, so a tuple of them is a full value copy.
        return tuple(self._messages)

    async def append(self, *messages: Message) -> None:
        async with self._lock:
            self._messages.extend(messages)
        logger.debug("Memory now holds %d messages", len(self._messages))

    async def clear(self) -> None:
        async with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)


class SessionRegistry:
    """Independent :class:`InMemoryStore` per session id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, InMemoryStore] = {}

    def create(self) -> str:
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = InMemoryStore()
        logger.info("Created session %s", session_id)
        return session_id

    def get(self, session_id: str) -> InMemoryStore:
        """Return the store for *session_id*; ``KeyError`` if unknown."""
        return self._sessions[session_id]

    def get_or_create(self, session_id: str | None = None) -> Tuple[str, InMemoryStore]:
        """Get existing session or create a new one."""
        if session_id and session_id in self._sessions:
            return session_id, self._sessions[session_id]
        new_id = self.create()
        return new_id, self._sessions[new_id]

    def ids(self) -> List[str]:
        return list(self._sessions)

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
