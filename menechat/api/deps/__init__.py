"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    ServiceCache,
    build_chat_service,
    get_chat_service,
    get_chat_store,
    get_service_cache,
    get_session_service,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "build_chat_service",
    "get_chat_service",
    "get_chat_store",
    "get_service_cache",
    "get_session_service",
    "get_settings_dependency",
]
