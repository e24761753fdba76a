"""
Gemini completion client.

Sends the session history as alternating user/model turns plus the new user
turn and a fixed system instruction, and returns the single reply text.
Translates SDK and transport failures into the application error taxonomy.

Dependencies: google-genai, httpx, menechat.configs
System role: Completion service boundary adapter
"""

import logging
from collections.abc import Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from menechat.configs.completion import CompletionSettings
from menechat.core.completion_stream import NO_RESPONSE_TEXT, is_error_marker
from menechat.core.exceptions import ApiError, ConfigurationError, NetworkError
from menechat.models.conversation import Message, Sender

logger = logging.getLogger(__name__)


def build_contents(user_text: str, history: Sequence[Message]) -> list[types.Content]:
    """
    Format history and the new turn as Gemini contents.

    Earlier error markers are left out so a failed exchange does not
    pollute the context of the next one.

    Args:
        user_text: New user turn
        history: Prior messages, ascending

    Returns:
        list[types.Content]: Ordered turns ending with the new user turn
    """
    contents = [
        types.Content(
            role="user" if msg.sender == Sender.USER else "model",
            parts=[types.Part(text=msg.text)],
        )
        for msg in history
        if not is_error_marker(msg.text)
    ]
    contents.append(types.Content(role="user", parts=[types.Part(text=user_text)]))
    return contents


def extract_reply(response: types.GenerateContentResponse) -> str:
    """Read candidates[0].content.parts[0].text, falling back to a no-response text."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return NO_RESPONSE_TEXT
    parts = candidates[0].content.parts or []
    if not parts or not parts[0].text:
        return NO_RESPONSE_TEXT
    return parts[0].text


class GeminiCompletionClient:
    """Completion client backed by the google-genai async API."""

    def __init__(
        self,
        api_key: str | None,
        model_name: str = "gemini-2.5-flash",
        system_instruction: str = "",
        timeout_ms: int = 30_000,
        enable_search_grounding: bool = False,
        client: genai.Client | None = None,
    ) -> None:
        """
        Initialize completion client.

        Args:
            api_key: Gemini API key
            model_name: Model id for generateContent
            system_instruction: Fixed system instruction
            timeout_ms: Transport timeout in milliseconds
            enable_search_grounding: Attach the Google Search tool
            client: Pre-built SDK client (tests)

        Raises:
            ConfigurationError: If no API key and no client is given
        """
        if client is None and not api_key:
            raise ConfigurationError(
                "Gemini API key is missing. Set the GEMINI_API_KEY environment variable.",
                setting="GEMINI_API_KEY",
            )
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.enable_search_grounding = enable_search_grounding
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout_ms),
        )

    @classmethod
    def from_settings(cls, settings: CompletionSettings) -> "GeminiCompletionClient":
        return cls(
            api_key=settings.api_key,
            model_name=settings.model_name,
            system_instruction=settings.system_instruction,
            timeout_ms=settings.timeout_ms,
            enable_search_grounding=settings.enable_search_grounding,
        )

    def _config(self) -> types.GenerateContentConfig:
        tools = None
        if self.enable_search_grounding:
            tools = [types.Tool(google_search=types.GoogleSearch())]
        return types.GenerateContentConfig(
            system_instruction=self.system_instruction or None,
            tools=tools,
        )

    async def complete(self, user_text: str, history: Sequence[Message]) -> str:
        """
        Request one completion.

        Args:
            user_text: New user turn
            history: Prior messages of the session, ascending

        Returns:
            str: Reply text, or a no-response text when the body carries none

        Raises:
            ApiError: Non-2xx answer from the service
            NetworkError: Transport failure or timeout
        """
        contents = build_contents(user_text, history)
        logger.info(
            f"{__name__}:complete - Requesting completion",
            extra={"model": self.model_name, "turns": len(contents)},
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=self._config(),
            )
        except genai_errors.APIError as e:
            raise ApiError(
                f"API Error {e.code}: {e.message or 'Unknown'}",
                status=e.code,
            ) from e
        except (httpx.TransportError, TimeoutError) as e:
            raise NetworkError(
                f"Failed to reach completion service: {type(e).__name__}",
                details={"error_msg": str(e)},
            ) from e

        return extract_reply(response)
