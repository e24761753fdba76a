"""
Completion service configuration settings.

Credentials and request shaping for the Gemini generateContent endpoint.

Dependencies: pydantic, pydantic_settings
System role: Text-generation service configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from menechat.configs.base import BaseSettings

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are Mene Bot, an expert, cheerful, and helpful AI assistant. "
    "Keep your responses concise and highly informative."
)


class CompletionSettings(BaseSettings):
    """Gemini completion configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GEMINI_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="Gemini API key")
    model_name: str = Field(default="gemini-2.5-flash", description="Gemini model id")
    system_instruction: str = Field(
        default=DEFAULT_SYSTEM_INSTRUCTION,
        description="Fixed system instruction sent with every request",
    )
    timeout_ms: int = Field(default=30_000, description="Transport timeout in milliseconds")
    max_attempts: int = Field(default=5, description="Attempts for retryable failures")
    enable_search_grounding: bool = Field(
        default=False,
        description="Attach the Google Search grounding tool to requests",
    )
