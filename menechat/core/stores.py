"""
Store contracts for sessions and messages.

Both the SQL store and the in-memory document store implement these
protocols; the conversation controller and the API services depend only
on them.

Dependencies: menechat.models, menechat.core.change_feed
System role: Persistence ports
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from menechat.core.change_feed import ChangeFeed
from menechat.models.conversation import Message, Sender, Session

DEFAULT_TITLE_PREFIX = "New Chat"


def default_session_title(prefix: str = DEFAULT_TITLE_PREFIX, now: datetime | None = None) -> str:
    """Placeholder title such as 'New Chat 14:03:27'."""
    now = now or datetime.now()
    return f"{prefix} {now.strftime('%H:%M:%S')}"


class SessionStore(Protocol):
    """Persisted collection of sessions."""

    changes: ChangeFeed

    async def list(self) -> list[Session]:
        """Sessions newest first."""
        ...

    async def get(self, session_id: str) -> Session | None:
        ...

    async def create(
        self,
        title: str | None = None,
        title_is_placeholder: bool | None = None,
    ) -> Session:
        """Persist a new session; a missing title yields a placeholder title."""
        ...

    async def rename(self, session_id: str, title: str) -> Session | None:
        """Set the title and clear title_is_placeholder."""
        ...

    async def delete(self, session_id: str) -> None:
        """Delete the session and its messages atomically; missing id is a no-op."""
        ...


class MessageStore(Protocol):
    """Persisted, per-session, time-ordered collection of messages."""

    changes: ChangeFeed

    async def list(self, session_id: str, limit: int = 100) -> list[Message]:
        """Most recent `limit` messages, ascending; empty when `limit` is not positive."""
        ...

    async def append(self, session_id: str, sender: Sender, text: str) -> Message:
        """Persist one message; SessionNotFoundError for an unknown session."""
        ...


def resolve_title(
    title: str | None,
    title_is_placeholder: bool | None,
    prefix: str = DEFAULT_TITLE_PREFIX,
) -> tuple[str, bool]:
    """
    Apply the title defaults shared by all store backends.

    Args:
        title: Requested title, None or blank for a placeholder
        title_is_placeholder: Explicit flag, None to infer from title
        prefix: Placeholder title prefix

    Returns:
        tuple[str, bool]: Final title and placeholder flag
    """
    if title is None or not title.strip():
        return default_session_title(prefix), True
    if title_is_placeholder is None:
        title_is_placeholder = False
    return title.strip(), title_is_placeholder
