"""
Message CRUD operations.

Session-scoped message persistence: append and windowed, ascending reads.

Dependencies: sqlalchemy, menechat.boundary.db.models
System role: Message persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from menechat.boundary.db.models.message_model import MessageModel
from menechat.boundary.db.CRUD.base_crud import BaseCRUD
from menechat.models.conversation import Sender


class MessageCRUD(BaseCRUD[MessageModel]):
    """CRUD operations for MessageModel."""

    def __init__(self) -> None:
        """Initialize MessageCRUD with MessageModel."""
        super().__init__(MessageModel)

    async def append(
        self,
        session: AsyncSession,
        session_id: int,
        sender: Sender,
        text: str,
    ) -> MessageModel:
        """
        Insert one message.

        Args:
            session: Async database session
            session_id: Owning session id (must exist)
            sender: user or bot
            text: Message content

        Returns:
            Created MessageModel with id and created_at
        """
        return await self.create(
            session,
            session_id=session_id,
            sender=sender,
            text=text,
        )

    async def list_for_session(
        self,
        session: AsyncSession,
        session_id: int,
        limit: int | None = None,
    ) -> Sequence[MessageModel]:
        """
        Retrieve the most recent messages of a session, oldest first.

        Args:
            session: Async database session
            session_id: Session id
            limit: Window size (None = full history)

        Returns:
            Sequence of MessageModels ascending by (created_at, id)
        """
        stmt = (
            select(MessageModel)
            .where(MessageModel.session_id == session_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))


message_crud = MessageCRUD()
