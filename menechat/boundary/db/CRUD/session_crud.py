"""
Session CRUD operations.

Provides Create, Read, Update, Delete operations for SessionModel
with session-specific query methods.

Dependencies: sqlalchemy, menechat.boundary.db.models
System role: Session persistence operations
"""

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from menechat.boundary.db.models.message_model import MessageModel
from menechat.boundary.db.models.session_model import SessionModel
from menechat.boundary.db.CRUD.base_crud import BaseCRUD


class SessionCRUD(BaseCRUD[SessionModel]):
    """
    CRUD operations for SessionModel.

    Extends BaseCRUD with newest-first listing, renaming and
    cascading deletion of the session's messages.
    """

    def __init__(self) -> None:
        """Initialize SessionCRUD with SessionModel."""
        super().__init__(SessionModel)

    async def list_newest_first(
        self,
        session: AsyncSession,
        limit: int | None = None,
    ) -> Sequence[SessionModel]:
        """
        Retrieve sessions ordered by creation time, newest first.

        Ties on created_at are broken by id (later insert first).

        Args:
            session: Async database session
            limit: Maximum number of sessions to return

        Returns:
            Sequence of SessionModels
        """
        stmt = select(SessionModel).order_by(
            SessionModel.created_at.desc(),
            SessionModel.id.desc(),
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def rename(
        self,
        session: AsyncSession,
        id: int,
        title: str,
    ) -> SessionModel | None:
        """
        Replace the title and clear the placeholder flag.

        Args:
            session: Async database session
            id: Session id
            title: New title

        Returns:
            Updated SessionModel if found, None otherwise
        """
        return await self.update_by_id(
            session,
            id,
            title=title,
            title_is_placeholder=False,
        )

    async def delete_with_messages(self, session: AsyncSession, id: int) -> bool:
        """
        Delete a session and all of its messages.

        Messages are removed explicitly in the same transaction, so the
        cascade holds even where the database does not enforce foreign keys.

        Args:
            session: Async database session (caller owns the transaction)
            id: Session id

        Returns:
            True if the session existed, False otherwise
        """
        await session.execute(delete(MessageModel).where(MessageModel.session_id == id))
        return await self.delete_by_id(session, id)


session_crud = SessionCRUD()
