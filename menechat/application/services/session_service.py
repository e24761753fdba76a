"""
Session service orchestrator.

Coordinates session lifecycle operations and message listing.

Dependencies: menechat.core.stores
System role: Session use case orchestration
"""

import logging

from menechat.core.exceptions import SessionNotFoundError
from menechat.core.stores import MessageStore, SessionStore
from menechat.models.conversation import Message, Session

logger = logging.getLogger(__name__)


class SessionService:
    """Session service orchestrator."""

    def __init__(self, sessions: SessionStore, messages: MessageStore) -> None:
        """
        Initialize session service with its stores.

        Args:
            sessions: Session store
            messages: Message store
        """
        self.sessions = sessions
        self.messages = messages

    async def create_session(self, title: str | None = None) -> Session:
        """
        Create new session.

        Args:
            title: Optional title, blank gets a timestamped placeholder

        Returns:
            Session: Created session
        """
        return await self.sessions.create(title=title)

    async def get_all_sessions(self) -> list[Session]:
        """Get all sessions, newest first."""
        return await self.sessions.list()

    async def delete_session(self, session_id: str) -> bool:
        """
        Delete session and its messages.

        Idempotent: deleting an unknown session succeeds.

        Args:
            session_id: Session id

        Returns:
            bool: True if the session existed
        """
        existed = await self.sessions.get(session_id) is not None
        await self.sessions.delete(session_id)
        if not existed:
            logger.info(
                f"{__name__}:delete_session - Session already absent",
                extra={"session_id": session_id},
            )
        return existed

    async def get_messages(self, session_id: str, limit: int = 100) -> list[Message]:
        """
        Get the most recent messages of a session, ascending.

        Args:
            session_id: Session id
            limit: Maximum number of messages

        Returns:
            list[Message]: Messages oldest first

        Raises:
            SessionNotFoundError: If session not found
        """
        if await self.sessions.get(session_id) is None:
            raise SessionNotFoundError(session_id)
        return await self.messages.list(session_id, limit=limit)
