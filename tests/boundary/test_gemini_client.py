"""
Test suite for GeminiCompletionClient.

Tests request formatting, reply extraction and translation of SDK and
transport errors. The SDK client is mocked at client.aio.models.

System role: Verification of the completion service boundary
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from menechat.boundary.llm.gemini_client import (
    GeminiCompletionClient,
    build_contents,
    extract_reply,
)
from menechat.core.completion_stream import NO_RESPONSE_TEXT
from menechat.core.exceptions import ApiError, ConfigurationError, NetworkError
from menechat.models.conversation import Message, Sender

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _message(sender: Sender, text: str) -> Message:
    return Message(id=text, session_id="s1", sender=sender, text=text, created_at=NOW)


def _response(text: str | None) -> types.GenerateContentResponse:
    parts = [types.Part(text=text)] if text is not None else []
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


@pytest.fixture
def sdk_client() -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=_response("Hello!"))
    return client


@pytest.fixture
def gemini(sdk_client: MagicMock) -> GeminiCompletionClient:
    return GeminiCompletionClient(
        api_key=None,
        model_name="gemini-test",
        system_instruction="You are Mene Bot.",
        client=sdk_client,
    )


class TestBuildContents:
    """Test suite for build_contents()."""

    def test_roles_follow_senders_and_new_turn_is_last(self) -> None:
        history = [_message(Sender.USER, "Hi"), _message(Sender.BOT, "Hello!")]

        contents = build_contents("How are you?", history)

        assert [c.role for c in contents] == ["user", "model", "user"]
        assert [c.parts[0].text for c in contents] == ["Hi", "Hello!", "How are you?"]

    def test_error_markers_are_left_out(self) -> None:
        history = [
            _message(Sender.USER, "Hi"),
            _message(Sender.BOT, "ERROR: Failed to connect to AI. Details: timeout"),
        ]

        contents = build_contents("Again?", history)

        assert [c.parts[0].text for c in contents] == ["Hi", "Again?"]


class TestExtractReply:
    """Test suite for extract_reply()."""

    def test_reads_first_candidate_text(self) -> None:
        assert extract_reply(_response("Hi there!")) == "Hi there!"

    def test_missing_parts_fall_back(self) -> None:
        assert extract_reply(_response(None)) == NO_RESPONSE_TEXT

    def test_missing_candidates_fall_back(self) -> None:
        assert extract_reply(types.GenerateContentResponse(candidates=[])) == NO_RESPONSE_TEXT


class TestGeminiCompletionClient:
    """Test suite for GeminiCompletionClient.complete()."""

    def test_init_without_key_or_client_raises(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            GeminiCompletionClient(api_key=None)

        assert exc_info.value.details["setting"] == "GEMINI_API_KEY"

    @pytest.mark.asyncio
    async def test_complete_returns_reply_text(self, gemini, sdk_client) -> None:
        # Act
        reply = await gemini.complete("Hi", [])

        # Assert
        assert reply == "Hello!"
        kwargs = sdk_client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["config"].system_instruction == "You are Mene Bot."
        assert kwargs["config"].tools is None

    @pytest.mark.asyncio
    async def test_search_grounding_adds_google_search_tool(self, sdk_client) -> None:
        client = GeminiCompletionClient(
            api_key=None, enable_search_grounding=True, client=sdk_client
        )

        await client.complete("Weather today?", [])

        config = sdk_client.aio.models.generate_content.await_args.kwargs["config"]
        assert config.tools[0].google_search is not None

    @pytest.mark.asyncio
    async def test_api_error_is_translated_with_status(self, gemini, sdk_client) -> None:
        # Arrange
        sdk_client.aio.models.generate_content.side_effect = genai_errors.APIError(
            429, {"error": {"message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
        )

        # Act / Assert
        with pytest.raises(ApiError) as exc_info:
            await gemini.complete("Hi", [])

        assert exc_info.value.status == 429
        assert "429" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_is_translated(self, gemini, sdk_client) -> None:
        sdk_client.aio.models.generate_content.side_effect = httpx.ConnectError("refused")

        with pytest.raises(NetworkError):
            await gemini.complete("Hi", [])
