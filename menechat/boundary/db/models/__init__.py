"""
Database models package.

Exports:
  - SessionModel: Session ORM model
  - MessageModel: Message ORM model

Dependencies: sqlalchemy, menechat.boundary.db.base
System role: Database model definitions for domain entities
"""

from menechat.boundary.db.models.session_model import SessionModel
from menechat.boundary.db.models.message_model import MessageModel

__all__ = [
    "SessionModel",
    "MessageModel",
]
