"""
SQL-backed session and message stores.

Implements the SessionStore and MessageStore contracts on top of the CRUD
singletons. Every operation runs in its own transaction and publishes a
ChangeEvent after commit.

Dependencies: sqlalchemy, menechat.boundary.db.CRUD, menechat.core
System role: Relational persistence backend for conversations
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from menechat.boundary.db.base import Base
from menechat.boundary.db.connection import get_async_engine, get_async_session_factory
from menechat.boundary.db.CRUD.message_crud import message_crud
from menechat.boundary.db.CRUD.session_crud import session_crud
from menechat.configs.database import DatabaseSettings
from menechat.core.change_feed import ChangeEvent, ChangeFeed, ChangeKind, ChangeOp
from menechat.core.exceptions import PersistenceError, SessionNotFoundError, ValidationError
from menechat.core.stores import DEFAULT_TITLE_PREFIX, resolve_title
from menechat.models.conversation import Message, Sender, Session

# Import models to register them with Base.metadata
from menechat.boundary.db.models import MessageModel, SessionModel  # noqa: F401

logger = logging.getLogger(__name__)


def _parse_id(raw_id: str) -> int | None:
    """Convert an opaque string id to the integer primary key, None if malformed."""
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        return None


@asynccontextmanager
async def _transaction(
    factory: async_sessionmaker,
    operation: str,
) -> AsyncIterator[AsyncSession]:
    """Open a session and transaction, translating driver errors to PersistenceError."""
    try:
        async with factory() as db:
            async with db.begin():
                yield db
    except SQLAlchemyError as e:
        logger.error(
            f"{__name__}:{operation} - Database error: {type(e).__name__}: {e}",
            extra={"operation": operation, "error_type": type(e).__name__},
        )
        raise PersistenceError(
            f"Database {operation} failed: {type(e).__name__}",
            operation=operation,
            details={"error_msg": str(e)},
        ) from e


class SqlSessionStore:
    """SessionStore over the sessions table."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        changes: ChangeFeed,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
    ) -> None:
        self._factory = session_factory
        self.changes = changes
        self.title_prefix = title_prefix

    async def list(self) -> list[Session]:
        async with _transaction(self._factory, "list_sessions") as db:
            rows = await session_crud.list_newest_first(db)
            return [row.to_domain() for row in rows]

    async def get(self, session_id: str) -> Session | None:
        pk = _parse_id(session_id)
        if pk is None:
            return None
        async with _transaction(self._factory, "get_session") as db:
            row = await session_crud.get_by_id(db, pk)
            return row.to_domain() if row else None

    async def create(
        self,
        title: str | None = None,
        title_is_placeholder: bool | None = None,
    ) -> Session:
        """
        Persist a new session.

        Args:
            title: Requested title (None for a placeholder title)
            title_is_placeholder: Explicit placeholder flag

        Returns:
            Session: Created session with id and created_at
        """
        final_title, placeholder = resolve_title(title, title_is_placeholder, self.title_prefix)
        async with _transaction(self._factory, "create_session") as db:
            row = await session_crud.create(
                db,
                title=final_title,
                title_is_placeholder=placeholder,
            )
            created = row.to_domain()

        logger.info(
            f"{__name__}:create - Session created",
            extra={"session_id": created.id, "title_is_placeholder": placeholder},
        )
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.CREATED, session_id=created.id)
        )
        return created

    async def rename(self, session_id: str, title: str) -> Session | None:
        pk = _parse_id(session_id)
        if pk is None:
            return None
        async with _transaction(self._factory, "rename_session") as db:
            row = await session_crud.rename(db, pk, title)
            renamed = row.to_domain() if row else None

        if renamed is not None:
            await self.changes.publish(
                ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.UPDATED, session_id=session_id)
            )
        return renamed

    async def delete(self, session_id: str) -> None:
        """
        Delete a session together with its messages.

        Missing or malformed ids are a successful no-op.

        Args:
            session_id: Session id
        """
        pk = _parse_id(session_id)
        if pk is None:
            return
        async with _transaction(self._factory, "delete_session") as db:
            deleted = await session_crud.delete_with_messages(db, pk)

        if not deleted:
            logger.debug(
                f"{__name__}:delete - Session already absent",
                extra={"session_id": session_id},
            )
            return

        logger.info(f"{__name__}:delete - Session deleted", extra={"session_id": session_id})
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.SESSIONS, op=ChangeOp.DELETED, session_id=session_id)
        )
        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.MESSAGES, op=ChangeOp.DELETED, session_id=session_id)
        )


class SqlMessageStore:
    """MessageStore over the messages table."""

    def __init__(self, session_factory: async_sessionmaker, changes: ChangeFeed) -> None:
        self._factory = session_factory
        self.changes = changes

    async def list(self, session_id: str, limit: int = 100) -> list[Message]:
        pk = _parse_id(session_id)
        if pk is None or (limit is not None and limit <= 0):
            return []
        async with _transaction(self._factory, "list_messages") as db:
            rows = await message_crud.list_for_session(db, pk, limit=limit)
            return [row.to_domain() for row in rows]

    async def append(self, session_id: str, sender: Sender, text: str) -> Message:
        """
        Persist one message.

        Args:
            session_id: Owning session id
            sender: user or bot
            text: Non-empty message content

        Returns:
            Message: Persisted message

        Raises:
            ValidationError: If text is empty
            SessionNotFoundError: If the session does not exist
            PersistenceError: If the write fails
        """
        if not text:
            raise ValidationError("Message text must not be empty", field="text")
        pk = _parse_id(session_id)
        if pk is None:
            raise SessionNotFoundError(session_id)

        try:
            async with _transaction(self._factory, "append_message") as db:
                if not await session_crud.exists(db, pk):
                    raise SessionNotFoundError(session_id)
                row = await message_crud.append(db, pk, sender, text)
                message = row.to_domain()
        except PersistenceError as e:
            if isinstance(e.__cause__, IntegrityError):
                # Session removed between the existence check and the insert
                raise SessionNotFoundError(session_id) from e
            raise

        await self.changes.publish(
            ChangeEvent(kind=ChangeKind.MESSAGES, op=ChangeOp.CREATED, session_id=session_id)
        )
        return message


class SqlChatStore:
    """
    Session and message stores sharing one engine and one change feed.

    Usage:
        store = SqlChatStore.from_settings(settings.database)
        await store.create_tables()
        session = await store.sessions.create()
        await store.messages.append(session.id, Sender.USER, "Hello")
    """

    def __init__(
        self,
        engine: AsyncEngine,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
    ) -> None:
        self.engine = engine
        self.changes = ChangeFeed()
        factory = get_async_session_factory(engine)
        self.sessions = SqlSessionStore(factory, self.changes, title_prefix=title_prefix)
        self.messages = SqlMessageStore(factory, self.changes)

    @classmethod
    def from_settings(
        cls,
        db_config: DatabaseSettings,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
    ) -> "SqlChatStore":
        return cls(get_async_engine(db_config), title_prefix=title_prefix)

    async def create_tables(self) -> None:
        """Create sessions and messages tables if missing (idempotent)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables. Irreversible; development only."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(
                f"{__name__}:ping - Database unreachable: {type(e).__name__}",
                extra={"error_msg": str(e)},
            )
            return False

    async def close(self) -> None:
        await self.engine.dispose()
