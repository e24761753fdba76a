"""
Conversation behaviour settings.

Message window, streaming pace and session title rules.

Dependencies: pydantic, pydantic_settings
System role: Conversation controller configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from menechat.configs.base import BaseSettings


class ChatSettings(BaseSettings):
    """Conversation controller configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHAT_",
        case_sensitive=False,
        extra="ignore",
    )

    message_window: int = Field(default=100, description="Max messages loaded per session")
    fragment_delay: float = Field(
        default=0.02,
        description="Pause between revealed fragments in seconds",
    )
    auto_session_title: str = Field(
        default="Auto-Start Chat",
        description="Title of sessions created automatically on empty state",
    )
    default_title_prefix: str = Field(
        default="New Chat",
        description="Prefix of placeholder titles for user-created sessions",
    )
    title_max_words: int = Field(default=5, description="Words kept in a derived title")
    title_max_chars: int = Field(default=30, description="Characters kept in a derived title")
