"""Service orchestrators."""

from .chat_service import ChatService, ExchangeResult
from .session_service import SessionService

__all__ = [
    "ChatService",
    "ExchangeResult",
    "SessionService",
]
