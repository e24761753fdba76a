"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, IntegerIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - SessionModel, MessageModel: Conversation entities
  - session_crud, message_crud: CRUD operation singletons
  - SqlChatStore: SessionStore/MessageStore implementation over SQL

Dependencies: sqlalchemy, menechat.configs
System role: Relational adapter providing persistent storage for sessions
and their messages with cascading deletion.
"""

from menechat.boundary.db.base import Base, IntegerIDMixin, TimestampMixin
from menechat.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
)
from menechat.boundary.db.models import MessageModel, SessionModel
from menechat.boundary.db.CRUD import (
    BaseCRUD,
    MessageCRUD,
    SessionCRUD,
    message_crud,
    session_crud,
)
from menechat.boundary.db.sql_store import SqlChatStore, SqlMessageStore, SqlSessionStore

__all__ = [
    # Base classes
    "Base",
    "IntegerIDMixin",
    "TimestampMixin",
    # Connection
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "SessionModel",
    "MessageModel",
    # CRUD classes
    "BaseCRUD",
    "SessionCRUD",
    "MessageCRUD",
    # CRUD singletons
    "session_crud",
    "message_crud",
    # Stores
    "SqlChatStore",
    "SqlSessionStore",
    "SqlMessageStore",
]
