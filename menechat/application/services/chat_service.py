"""
Chat service for server-side message exchanges.

Orchestrates full exchange flow: history retrieval, completion, message
persistence and session titling. Supports a synchronous exchange for the
REST surface and stream_chat() for WebSocket real-time responses.

Dependencies: menechat.core, menechat.application.controller.titles
System role: Chat service orchestration layer
"""

import logging
from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass

from menechat.application.controller.titles import derive_title
from menechat.configs.chat import ChatSettings
from menechat.core.backoff import BackoffPolicy
from menechat.core.completion_stream import CompletionClient, CompletionStream, is_error_marker
from menechat.core.exceptions import MeneChatException, SessionNotFoundError, ValidationError
from menechat.core.stores import MessageStore, SessionStore
from menechat.models.conversation import Message, Sender
from menechat.models.streaming import StreamEvent, StreamEventType

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I ran into a technical error."


@dataclass
class ExchangeResult:
    """
    Outcome of one synchronous exchange.

    Attributes:
        user_message: Persisted user message
        reply_text: Reply returned to the caller
        bot_message: Persisted reply, None if the write failed
    """

    user_message: Message
    reply_text: str
    bot_message: Message | None


class ChatService:
    """
    Chat service for multi-turn conversations.

    Coordinates session validation, history retrieval, completion and
    message persistence.
    """

    def __init__(
        self,
        sessions: SessionStore,
        messages: MessageStore,
        completion_client: CompletionClient,
        backoff: BackoffPolicy | None = None,
        settings: ChatSettings | None = None,
    ) -> None:
        """
        Initialize chat service.

        Args:
            sessions: Session store
            messages: Message store
            completion_client: Client producing bot replies
            backoff: Retry policy around completions
            settings: Conversation settings
        """
        self.sessions = sessions
        self.messages = messages
        self.completion_client = completion_client
        self.backoff = backoff or BackoffPolicy()
        self.settings = settings or ChatSettings()

    async def _prepare(self, session_id: str, content: str | None) -> tuple[str, list[Message]]:
        text = (content or "").strip()
        if not text:
            raise ValidationError("Missing message content", field="content")

        session = await self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        history = await self.messages.list(session_id, limit=self.settings.message_window)
        return text, [m for m in history if not is_error_marker(m.text)]

    async def _persist_reply(self, session_id: str, text: str) -> Message | None:
        try:
            return await self.messages.append(session_id, Sender.BOT, text)
        except MeneChatException as e:
            logger.error(
                f"{__name__}:_persist_reply - Failed to save bot response: {e}",
                extra={"session_id": session_id, "error_msg": e.message},
            )
            return None

    async def _title_if_placeholder(self, session_id: str, text: str) -> None:
        try:
            session = await self.sessions.get(session_id)
            if session is None or not session.title_is_placeholder:
                return
            title = derive_title(
                text,
                max_words=self.settings.title_max_words,
                max_chars=self.settings.title_max_chars,
            )
            await self.backoff.run(lambda: self.sessions.rename(session_id, title))
        except MeneChatException as e:
            logger.warning(
                f"{__name__}:_title_if_placeholder - Rename failed: {e}",
                extra={"session_id": session_id},
            )

    async def send(self, session_id: str, content: str | None) -> ExchangeResult:
        """
        Process one exchange synchronously.

        Flow:
        1. Validate content and session
        2. Fetch recent history (before the new turn)
        3. Store user message
        4. Obtain reply, degrading to a fixed apology on failure
        5. Store reply (failure is logged, the reply is still returned)

        Args:
            session_id: Session id
            content: User's message

        Returns:
            ExchangeResult: Persisted messages and reply text

        Raises:
            ValidationError: If content is missing or blank
            SessionNotFoundError: If session does not exist
        """
        text, history = await self._prepare(session_id, content)
        user_message = await self.messages.append(session_id, Sender.USER, text)

        try:
            reply = await self.backoff.run(
                lambda: self.completion_client.complete(text, history)
            )
        except MeneChatException as e:
            logger.error(
                f"{__name__}:send - Completion failed: {type(e).__name__}: {e}",
                extra={"session_id": session_id, "error_type": type(e).__name__},
            )
            reply = FALLBACK_REPLY

        bot_message = await self._persist_reply(session_id, reply)
        await self._title_if_placeholder(session_id, text)

        logger.info(
            f"{__name__}:send - Exchange complete",
            extra={
                "session_id": session_id,
                "reply_len": len(reply),
                "persisted": bot_message is not None,
            },
        )
        return ExchangeResult(user_message=user_message, reply_text=reply, bot_message=bot_message)

    async def stream_chat(
        self,
        session_id: str,
        message: str,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream reply fragments for real-time WebSocket delivery.

        Flow:
        1. Validate content and session
        2. Fetch recent history and store user message
        3. Reveal reply fragment by fragment
        4. Store the full reply (or the error marker) after completion

        Args:
            session_id: Session id
            message: User's message

        Yields:
            StreamEvent: Token, error and complete events

        Raises:
            ValidationError: If message is blank
            SessionNotFoundError: If session does not exist
        """
        logger.info(f"{__name__}:stream_chat - START session_id={session_id}")

        text, history = await self._prepare(session_id, message)
        await self.messages.append(session_id, Sender.USER, text)

        stream = self._open_stream(text, history)
        full_answer = ""
        index = 0
        pull = await stream.next()
        while True:
            if pull.error is not None:
                yield StreamEvent(
                    event=StreamEventType.ERROR,
                    data={"code": "COMPLETION_ERROR", "message": pull.fragment},
                )
            elif pull.fragment is not None:
                yield StreamEvent(
                    event=StreamEventType.TOKEN,
                    data={"token": pull.fragment, "index": index},
                )
                index += 1
            if pull.done:
                full_answer = pull.full_text or ""
                break
            pull = await stream.next()

        bot_message = await self._persist_reply(session_id, full_answer) if full_answer else None
        await self._title_if_placeholder(session_id, text)

        yield StreamEvent(
            event=StreamEventType.COMPLETE,
            data={
                "full_answer": full_answer,
                "message_id": bot_message.id if bot_message else None,
            },
        )
        logger.info(
            f"{__name__}:stream_chat - END session_id={session_id}",
            extra={"tokens": index, "answer_len": len(full_answer)},
        )

    def _open_stream(self, text: str, history: Sequence[Message]) -> CompletionStream:
        return CompletionStream(
            text,
            history,
            self.completion_client,
            backoff=self.backoff,
            fragment_delay=self.settings.fragment_delay,
        )
