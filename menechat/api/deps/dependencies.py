"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: menechat.configs, menechat.application, menechat.boundary
System role: DI container for service injection
"""

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, status

from menechat.application.services import ChatService, SessionService
from menechat.boundary.db import SqlChatStore
from menechat.boundary.llm import GeminiCompletionClient
from menechat.configs import Settings, get_settings
from menechat.core.backoff import BackoffPolicy
from menechat.core.completion_stream import CompletionClient
from menechat.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ServiceCache:
    """Container for cached service instances."""

    def __init__(
        self,
        settings: Settings | None = None,
        store=None,
        completion_client: CompletionClient | None = None,
    ):
        self._settings = settings
        self._store = store
        self._completion_client = completion_client
        self._configuration_error: ConfigurationError | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def store(self):
        """Get cached chat store."""
        if self._store is None:
            self._store = SqlChatStore.from_settings(
                self.settings.database,
                title_prefix=self.settings.chat.default_title_prefix,
            )
        return self._store

    @property
    def completion_client(self) -> CompletionClient:
        """
        Get cached completion client.

        Raises:
            ConfigurationError: If no API key is configured (logged once)
        """
        if self._completion_client is None:
            if self._configuration_error is not None:
                raise self._configuration_error
            try:
                self._completion_client = GeminiCompletionClient.from_settings(
                    self.settings.completion
                )
            except ConfigurationError as e:
                self._configuration_error = e
                logger.error(f"{__name__}:completion_client - {e}")
                raise
        return self._completion_client

    @property
    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(max_attempts=self.settings.completion.max_attempts)

    async def close(self) -> None:
        """Dispose cached instances."""
        if self._store is not None:
            await self._store.close()
        self._store = None
        self._completion_client = None
        self._configuration_error = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_chat_store(cache: ServiceCache = Depends(get_service_cache)):
    return cache.store


def get_session_service(
    cache: ServiceCache = Depends(get_service_cache),
) -> SessionService:
    """
    Get session service instance.

    Returns:
        SessionService: Session service over the cached store
    """
    store = cache.store
    return SessionService(sessions=store.sessions, messages=store.messages)


def build_chat_service(cache: ServiceCache) -> ChatService:
    """
    Build a chat service from cached instances.

    Raises:
        ConfigurationError: If the completion client is not configured
    """
    client = cache.completion_client
    store = cache.store
    return ChatService(
        sessions=store.sessions,
        messages=store.messages,
        completion_client=client,
        backoff=cache.backoff,
        settings=cache.settings.chat,
    )


def get_chat_service(cache: ServiceCache = Depends(get_service_cache)) -> ChatService:
    """
    Get chat service instance with the Gemini completion client.

    Returns:
        ChatService: Chat service over the cached store

    Raises:
        HTTPException: 503 if the completion client is not configured
    """
    try:
        return build_chat_service(cache)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message,
        ) from e
