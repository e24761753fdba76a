"""API routers."""

from .chat_stream import router as chat_stream_router
from .chats import router as chats_router
from .health import router as health_router

__all__ = [
    "chat_stream_router",
    "chats_router",
    "health_router",
]
