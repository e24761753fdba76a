"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from menechat.boundary.db.CRUD import session_crud, message_crud

    # Use singleton instances
    sessions = await session_crud.list_newest_first(db)

    # Or instantiate classes directly for custom behavior
    from menechat.boundary.db.CRUD import SessionCRUD
    custom_crud = SessionCRUD()
"""

from menechat.boundary.db.CRUD.base_crud import BaseCRUD
from menechat.boundary.db.CRUD.session_crud import SessionCRUD, session_crud
from menechat.boundary.db.CRUD.message_crud import MessageCRUD, message_crud

__all__ = [
    "BaseCRUD",
    "SessionCRUD",
    "session_crud",
    "MessageCRUD",
    "message_crud",
]
