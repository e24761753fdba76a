"""
In-memory document store for sessions and messages.

Document-per-entity backend with push notifications: every committed
mutation is published on the shared ChangeFeed. Mutations are applied
without suspension points in between, so a cascading delete is atomic
under cooperative scheduling.

Dependencies: menechat.core
System role: Push-capable persistence backend (offline client, tests)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from menechat.core.change_feed import ChangeEvent, ChangeFeed, ChangeKind, ChangeOp
from menechat.core.exceptions import SessionNotFoundError, ValidationError
from menechat.core.stores import DEFAULT_TITLE_PREFIX, resolve_title
from menechat.models.conversation import Message, Sender, Session

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Documents:
    """Shared document tables plus an insertion counter for tie-breaking."""

    def __init__(self, clock: Callable[[], datetime]) -> None:
        self.clock = clock
        self.sessions: dict[str, tuple[int, Session]] = {}
        self.messages: dict[str, tuple[int, Message]] = {}
        self._seq = itertools.count()

    def next_seq(self) -> int:
        return next(self._seq)


class InMemorySessionStore:
    """SessionStore over an in-memory document table."""

    def __init__(
        self,
        docs: _Documents,
        changes: ChangeFeed,
        latency: float = 0.0,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
    ) -> None:
        self._docs = docs
        self.changes = changes
        self.latency = latency
        self.title_prefix = title_prefix

    async def _io(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def list(self) -> list[Session]:
        await self._io()
        ordered = sorted(
            self._docs.sessions.values(),
            key=lambda entry: (entry[1].created_at, entry[0]),
            reverse=True,
        )
        return [session.model_copy() for _, session in ordered]

    async def get(self, session_id: str) -> Session | None:
        await self._io()
        entry = self._docs.sessions.get(session_id)
        return entry[1].model_copy() if entry else None

    async def create(
        self,
        title: str | None = None,
        title_is_placeholder: bool | None = None,
    ) -> Session:
        final_title, placeholder = resolve_title(title, title_is_placeholder, self.title_prefix)
        await self._io()
        session = Session(
            id=uuid.uuid4().hex,
            title=final_title,
            title_is_placeholder=placeholder,
            created_at=self._docs.clock(),
        )
        self._docs.sessions[session.id] = (self._docs.next_seq(), session)
        logger.info(
            f"{__name__}:create - Session created",
            extra={"session_id": session.id, "title_is_placeholder": placeholder},
        )
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.CREATED, session_id=session.id)
        )
        return session.model_copy()

    async def rename(self, session_id: str, title: str) -> Session | None:
        await self._io()
        entry = self._docs.sessions.get(session_id)
        if entry is None:
            return None
        seq, session = entry
        renamed = session.model_copy(update={"title": title, "title_is_placeholder": False})
        self._docs.sessions[session_id] = (seq, renamed)
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.UPDATED, session_id=session_id)
        )
        return renamed.model_copy()

    async def delete(self, session_id: str) -> None:
        await self._io()
        if self._docs.sessions.pop(session_id, None) is None:
            return
        orphaned = [
            message_id
            for message_id, (_, message) in self._docs.messages.items()
            if message.session_id == session_id
        ]
        for message_id in orphaned:
            del self._docs.messages[message_id]

        logger.info(
            f"{__name__}:delete - Session deleted",
            extra={"session_id": session_id, "messages_deleted": len(orphaned)},
        )
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.DELETED, session_id=session_id)
        )
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.MESSAGES, op=ChangeOp.DELETED, session_id=session_id)
        )


class InMemoryMessageStore:
    """MessageStore over an in-memory document table."""

    def __init__(self, docs: _Documents, changes: ChangeFeed, latency: float = 0.0) -> None:
        self._docs = docs
        self.changes = changes
        self.latency = latency

    async def _io(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def list(self, session_id: str, limit: int = 100) -> list[Message]:
        await self._io()
        if limit is not None and limit <= 0:
            return []
        ordered = sorted(
            (entry for entry in self._docs.messages.values() if entry[1].session_id == session_id),
            key=lambda entry: (entry[1].created_at, entry[0]),
        )
        if limit is not None:
            ordered = ordered[-limit:]
        return [message.model_copy() for _, message in ordered]

    async def append(self, session_id: str, sender: Sender, text: str) -> Message:
        if not text:
            raise ValidationError("Message text must not be empty", field="text")
        await self._io()
        if session_id not in self._docs.sessions:
            raise SessionNotFoundError(session_id)
        message = Message(
            id=uuid.uuid4().hex,
            session_id=session_id,
            sender=sender,
            text=text,
            created_at=self._docs.clock(),
        )
        self._docs.messages[message.id] = (self._docs.next_seq(), message)
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.MESSAGES, op=ChangeOp.CREATED, session_id=session_id)
        )
        return message.model_copy()


class InMemoryChatStore:
    """
    Session and message stores sharing one document space and change feed.

    Args:
        clock: Timestamp source for created_at (defaults to UTC now)
        latency: Simulated I/O delay per operation, in seconds
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        latency: float = 0.0,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
    ) -> None:
        self.changes = ChangeFeed()
        docs = _Documents(clock or _utc_now)
        self.sessions = InMemorySessionStore(docs, self.changes, latency, title_prefix)
        self.messages = InMemoryMessageStore(docs, self.changes, latency)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
