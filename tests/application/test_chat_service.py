"""
Test suite for ChatService.

Tests the synchronous REST exchange and the WebSocket stream against the
in-memory store with scripted completion clients.

System role: Verification of chat service orchestration layer
"""

import pytest

from menechat.application.services.chat_service import FALLBACK_REPLY, ChatService
from menechat.core.exceptions import (
    ApiError,
    PersistenceError,
    SessionNotFoundError,
    ValidationError,
)
from menechat.models.conversation import Sender
from menechat.models.streaming import StreamEventType
from tests.conftest import FakeCompletionClient


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient(reply="Hi there!")


@pytest.fixture
def chat_service(memory_store, completion_client, fast_backoff, chat_settings) -> ChatService:
    """Provide ChatService over the in-memory store."""
    return ChatService(
        sessions=memory_store.sessions,
        messages=memory_store.messages,
        completion_client=completion_client,
        backoff=fast_backoff,
        settings=chat_settings,
    )


class TestChatServiceSend:
    """Test suite for ChatService.send()."""

    @pytest.mark.asyncio
    async def test_send_persists_both_messages_and_titles_session(
        self, chat_service, memory_store
    ) -> None:
        # Arrange
        session = await memory_store.sessions.create()

        # Act
        result = await chat_service.send(session.id, "  Hello  ")

        # Assert
        assert result.user_message.text == "Hello"
        assert result.reply_text == "Hi there!"
        assert result.bot_message.sender is Sender.BOT
        stored = await memory_store.messages.list(session.id)
        assert [m.text for m in stored] == ["Hello", "Hi there!"]
        assert (await memory_store.sessions.get(session.id)).title == "Hello"

    @pytest.mark.asyncio
    async def test_send_passes_prior_history_only(
        self, chat_service, memory_store, completion_client
    ) -> None:
        session = await memory_store.sessions.create()
        await chat_service.send(session.id, "first")

        await chat_service.send(session.id, "second")

        user_text, history = completion_client.calls[-1]
        assert user_text == "second"
        assert [m.text for m in history] == ["first", "Hi there!"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_send_rejects_missing_content(self, chat_service, memory_store, content) -> None:
        session = await memory_store.sessions.create()

        with pytest.raises(ValidationError):
            await chat_service.send(session.id, content)

    @pytest.mark.asyncio
    async def test_send_to_unknown_session_raises(self, chat_service) -> None:
        with pytest.raises(SessionNotFoundError):
            await chat_service.send("missing", "Hello")

    @pytest.mark.asyncio
    async def test_completion_failure_degrades_to_apology(
        self, chat_service, memory_store, completion_client
    ) -> None:
        # Arrange
        completion_client.error = ApiError("API Error 400: bad", status=400)
        session = await memory_store.sessions.create()

        # Act
        result = await chat_service.send(session.id, "Hello")

        # Assert
        assert result.reply_text == FALLBACK_REPLY
        assert result.bot_message.text == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_reply_write_failure_still_returns_reply(
        self, chat_service, memory_store
    ) -> None:
        # Arrange
        session = await memory_store.sessions.create()
        original_append = memory_store.messages.append

        async def flaky_append(session_id, sender, text):
            if sender is Sender.BOT:
                raise PersistenceError("disk full", operation="append")
            return await original_append(session_id, sender, text)

        memory_store.messages.append = flaky_append

        # Act
        result = await chat_service.send(session.id, "Hello")

        # Assert
        assert result.reply_text == "Hi there!"
        assert result.bot_message is None


class TestChatServiceStream:
    """Test suite for ChatService.stream_chat()."""

    @pytest.mark.asyncio
    async def test_stream_emits_tokens_then_complete(self, chat_service, memory_store) -> None:
        # Arrange
        session = await memory_store.sessions.create()

        # Act
        events = [event async for event in chat_service.stream_chat(session.id, "Hello")]

        # Assert
        tokens = [e for e in events if e.event is StreamEventType.TOKEN]
        assert "".join(e.data["token"] for e in tokens) == "Hi there!"
        assert [e.data["index"] for e in tokens] == list(range(len(tokens)))
        complete = events[-1]
        assert complete.event is StreamEventType.COMPLETE
        assert complete.data["full_answer"] == "Hi there!"
        stored = await memory_store.messages.list(session.id)
        assert complete.data["message_id"] == stored[-1].id

    @pytest.mark.asyncio
    async def test_stream_failure_emits_error_and_persists_marker(
        self, chat_service, memory_store, completion_client
    ) -> None:
        # Arrange
        completion_client.error = ApiError("API Error 401: unauthorized", status=401)
        session = await memory_store.sessions.create()

        # Act
        events = [event async for event in chat_service.stream_chat(session.id, "Hello")]

        # Assert
        assert [e.event for e in events] == [StreamEventType.ERROR, StreamEventType.COMPLETE]
        assert events[0].data["code"] == "COMPLETION_ERROR"
        marker = events[1].data["full_answer"]
        assert marker.startswith("ERROR: Failed to connect to AI.")
        stored = await memory_store.messages.list(session.id)
        assert stored[-1].text == marker

    @pytest.mark.asyncio
    async def test_stream_to_unknown_session_raises(self, chat_service) -> None:
        with pytest.raises(SessionNotFoundError):
            async for _ in chat_service.stream_chat("missing", "Hello"):
                pass
