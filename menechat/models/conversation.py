"""
Conversation domain models.

Store-agnostic records for sessions and messages shared by both store
backends, the conversation controller and the API layer.

Dependencies: pydantic
System role: Conversation domain contracts
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Sender(str, Enum):
    """Author of a message."""

    USER = "user"
    BOT = "bot"


class Session(BaseModel):
    """
    A named, independently ordered conversation thread.

    Attributes:
        id: Opaque identifier assigned by the store
        title: Display title
        title_is_placeholder: True until the title is derived from the first exchange
        created_at: Creation timestamp, sole sort key for listing
    """

    id: str
    title: str
    title_is_placeholder: bool = True
    created_at: datetime


class Message(BaseModel):
    """
    A persisted message within a session.

    Attributes:
        id: Identifier assigned at persistence time
        session_id: Owning session
        sender: user or bot
        text: Message content (never empty once persisted)
        created_at: Sole sort key within a session (ascending)
    """

    id: str
    session_id: str
    sender: Sender
    text: str
    created_at: datetime


class Placeholder(BaseModel):
    """
    Local, never-persisted stand-in for a bot reply that is still streaming.

    Attributes:
        id: Temporary client-side id
        session_id: Session the exchange belongs to
        text: Accumulated reply text (grows monotonically)
        created_at: Local creation time
    """

    id: str
    session_id: str
    sender: Sender = Sender.BOT
    text: str = ""
    created_at: datetime
    is_placeholder: bool = Field(default=True, frozen=True)
