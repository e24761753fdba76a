"""
Streaming event schemas for WebSocket chat.

Defines event types and payloads for real-time chat streaming.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming chat."""

    CONNECTED = "connected"
    TOKEN = "token"
    COMPLETE = "complete"
    ERROR = "error"
    PONG = "pong"


class ClientEventType(str, Enum):
    """Client-to-server event types."""

    CHAT = "chat"
    PING = "ping"


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: StreamEventType
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"event": self.event.value, "data": self.data}


class ClientChatEvent(BaseModel):
    """
    Client chat message event payload.

    Attributes:
        message: User's chat message
    """

    message: str
