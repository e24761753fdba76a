"""
Conversation controller.

Owns the local conversation state and reconciles it with the session and
message stores: selection fallback, empty-state auto-creation, streaming
placeholders, persistence of replies and session titling. Every state
change is pushed to subscribers as a deep-copied snapshot.

Dependencies: menechat.core, menechat.models, menechat.configs
System role: Application-layer orchestrator between UI and stores
"""

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from menechat.application.controller.state import ConversationState
from menechat.application.controller.titles import derive_title
from menechat.configs.chat import ChatSettings
from menechat.core.backoff import BackoffPolicy
from menechat.core.change_feed import ChangeEvent, ChangeFeed, ChangeKind
from menechat.core.completion_stream import (
    NO_RESPONSE_TEXT,
    CompletionClient,
    CompletionStream,
    is_error_marker,
)
from menechat.core.exceptions import MeneChatException
from menechat.core.stores import MessageStore, SessionStore
from menechat.models.conversation import Message, Placeholder, Sender, Session
from menechat.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

StateListener = Callable[[ConversationState], None]
StreamFactory = Callable[[str, Sequence[Message]], CompletionStream]


class ConversationController:
    """
    Reconciles local conversation state with the stores.

    Multiple exchanges may run at once; each one owns its own placeholder
    and keeps streaming into it even after the user switches sessions.

    Usage:
        async with ConversationController(store.sessions, store.messages, client,
                                          changes=store.changes) as controller:
            controller.set_input("Hello")
            await controller.send_message()
    """

    def __init__(
        self,
        sessions: SessionStore,
        messages: MessageStore,
        completion_client: CompletionClient,
        changes: ChangeFeed | None = None,
        backoff: BackoffPolicy | None = None,
        settings: ChatSettings | None = None,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        """
        Initialize controller without touching the stores.

        Args:
            sessions: Session store
            messages: Message store
            completion_client: Client used by default completion streams
            changes: Push notifications from the stores, if the backend has them
            backoff: Retry policy for completions, reads and renames
            settings: Conversation settings
            stream_factory: Builds the stream for one exchange (defaults to CompletionStream)
        """
        self._sessions = sessions
        self._messages = messages
        self._client = completion_client
        self._changes = changes
        self._backoff = backoff or BackoffPolicy()
        self._settings = settings or ChatSettings()
        self._stream_factory = stream_factory or self._default_stream

        self.state = ConversationState()
        self._listeners: list[StateListener] = []
        self._unsubscribe_changes: Callable[[], None] | None = None
        self._auto_create_pending = False
        self._titling: set[str] = set()
        # placeholder id -> (reply text, message ids known before the reply write)
        self._persisting: dict[str, tuple[str, frozenset[str]]] = {}

    def _default_stream(self, user_text: str, history: Sequence[Message]) -> CompletionStream:
        return CompletionStream(
            user_text,
            history,
            self._client,
            backoff=self._backoff,
            fragment_delay=self._settings.fragment_delay,
        )

    # Lifecycle

    async def start(self) -> None:
        """Subscribe to store changes and load the session list."""
        if self._changes is not None and self._unsubscribe_changes is None:
            self._unsubscribe_changes = self._changes.on_change(self._on_change)
        await self.refresh_sessions()

    def stop(self) -> None:
        if self._unsubscribe_changes is not None:
            self._unsubscribe_changes()
            self._unsubscribe_changes = None

    async def __aenter__(self) -> "ConversationController":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # Observation

    def snapshot(self) -> ConversationState:
        return self.state.model_copy(deep=True)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every state change.

        Returns:
            Callable[[], None]: Unsubscribe function
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"{__name__}:_notify - State listener failed")

    def _set_error(self, message: str) -> None:
        self.state.error = message
        logger.warning(f"{__name__}:_set_error - {message}")
        self._notify()

    def dismiss_error(self) -> None:
        self.state.error = None
        self._notify()

    def dismiss_warning(self) -> None:
        self.state.warning = None
        self._notify()

    def set_input(self, text: str) -> None:
        self.state.input_buffer = text
        self._notify()

    async def _on_change(self, event: ChangeEvent) -> None:
        if event.kind is ChangeKind.SESSIONS:
            await self.refresh_sessions()
        elif event.session_id == self.state.current_session_id:
            await self.refresh_messages()

    # Sessions

    async def refresh_sessions(self) -> None:
        """Reload sessions and repair the selection."""
        try:
            sessions = await self._backoff.run(self._sessions.list)
        except MeneChatException as e:
            self._set_error(f"Failed to load sessions: {e.message}")
            return

        self.state.sessions = sessions
        await self._reconcile_selection()

    async def _reconcile_selection(self) -> None:
        sessions = self.state.sessions
        if not sessions:
            if self.state.current_session_id is not None:
                self.state.current_session_id = None
                self.state.messages = []
            self._notify()
            await self._auto_create()
            return

        known = {session.id for session in sessions}
        if self.state.current_session_id not in known:
            await self._select(sessions[0].id)
        else:
            self._notify()

    async def _auto_create(self) -> None:
        if self._auto_create_pending:
            return
        self._auto_create_pending = True
        try:
            session = await self._sessions.create(
                title=self._settings.auto_session_title,
                title_is_placeholder=True,
            )
        except MeneChatException as e:
            self._set_error(f"Could not create new session: {e.message}")
            return
        finally:
            self._auto_create_pending = False

        logger.info(
            f"{__name__}:_auto_create - Session auto-created on empty state",
            extra={"session_id": session.id},
        )
        self._merge_session(session)
        if self.state.current_session_id is None:
            await self._select(session.id)

    def _merge_session(self, session: Session) -> None:
        others = [s for s in self.state.sessions if s.id != session.id]
        self.state.sessions = sorted(
            [session, *others],
            key=lambda s: s.created_at,
            reverse=True,
        )

    async def create_session(self, title: str | None = None) -> Session | None:
        """
        Create a session and select it.

        Args:
            title: Explicit title, or None for a timestamped placeholder

        Returns:
            Session | None: Created session, None if the store failed
        """
        try:
            session = await self._sessions.create(title=title)
        except MeneChatException as e:
            self._set_error(f"Could not create new session: {e.message}")
            return None

        self._merge_session(session)
        await self._select(session.id)
        return session

    async def select_session(self, session_id: str) -> None:
        if session_id == self.state.current_session_id:
            return
        if all(session.id != session_id for session in self.state.sessions):
            logger.warning(
                f"{__name__}:select_session - Unknown session ignored",
                extra={"session_id": session_id},
            )
            return
        await self._select(session_id)

    async def _select(self, session_id: str) -> None:
        self.state.current_session_id = session_id
        self.state.messages = []
        self._notify()
        await self.refresh_messages()

    async def delete_session(self, session_id: str, confirmed: bool = False) -> bool:
        """
        Delete a session and its messages once the user has confirmed.

        Args:
            session_id: Session to delete
            confirmed: Explicit user confirmation; nothing happens without it

        Returns:
            bool: True if the delete was issued
        """
        if not confirmed:
            return False

        try:
            await self._sessions.delete(session_id)
        except MeneChatException as e:
            self._set_error(f"Failed to delete session: {e.message}")
            return False

        self.state.sessions = [s for s in self.state.sessions if s.id != session_id]
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:delete_session - Session deleted",
            session_id=session_id,
            was_current=session_id == self.state.current_session_id,
            remaining=len(self.state.sessions),
        )
        await self._reconcile_selection()
        return True

    # Messages

    async def refresh_messages(self) -> None:
        """Reload the authoritative message window of the selected session."""
        session_id = self.state.current_session_id
        if session_id is None:
            self.state.messages = []
            self._notify()
            return

        try:
            messages = await self._backoff.run(
                lambda: self._messages.list(session_id, limit=self._settings.message_window)
            )
        except MeneChatException as e:
            self._set_error(f"Failed to load messages: {e.message}")
            return

        # Selection may have moved while the read was in flight.
        if session_id != self.state.current_session_id:
            return
        self.state.messages = messages
        self._retire_persisted_placeholders()
        self._notify()

    def _retire_persisted_placeholders(self) -> None:
        """Drop placeholders whose persisted reply is now in the message window."""
        for placeholder_id, (reply, known_ids) in list(self._persisting.items()):
            placeholder = self.state.placeholders.get(placeholder_id)
            if placeholder is None or placeholder.session_id != self.state.current_session_id:
                continue
            if any(
                m.sender is Sender.BOT and m.text == reply and m.id not in known_ids
                for m in self.state.messages
            ):
                self.state.placeholders.pop(placeholder_id, None)

    def _merge_message(self, message: Message) -> None:
        if message.session_id != self.state.current_session_id:
            return
        if any(existing.id == message.id for existing in self.state.messages):
            return
        self.state.messages = sorted(
            [*self.state.messages, message],
            key=lambda m: m.created_at,
        )

    def _update_placeholder(self, placeholder_id: str, text: str) -> None:
        placeholder = self.state.placeholders.get(placeholder_id)
        if placeholder is None or len(text) < len(placeholder.text):
            return
        placeholder.text = text
        if placeholder.session_id == self.state.current_session_id:
            self._notify()

    async def send_message(self, text: str | None = None) -> Message | None:
        """
        Run one exchange in the selected session.

        Persists the user message, streams the reply into a placeholder,
        persists the reply and titles the session on its first exchange.
        The exchange stays bound to the session it started in.

        Args:
            text: Message text, or None to send the input buffer

        Returns:
            Message | None: Persisted bot reply, None if nothing was saved
        """
        raw = self.state.input_buffer if text is None else text
        user_text = raw.strip()
        session_id = self.state.current_session_id
        if not user_text or session_id is None:
            return None

        history = [m for m in self.state.messages if not is_error_marker(m.text)]
        self.state.input_buffer = ""
        self.state.error = None
        self.state.in_flight += 1
        self._notify()

        try:
            user_message = await self._messages.append(session_id, Sender.USER, user_text)
        except MeneChatException as e:
            self.state.in_flight -= 1
            self._set_error(f"Failed to send message: {e.message}")
            return None
        self._merge_message(user_message)

        placeholder = Placeholder(
            id=f"temp-{uuid.uuid4().hex}",
            session_id=session_id,
            created_at=datetime.now(timezone.utc),
        )
        self.state.placeholders[placeholder.id] = placeholder
        known_ids = None
        if session_id == self.state.current_session_id:
            known_ids = frozenset(m.id for m in self.state.messages)
        self._notify()

        reply, failure = await self._stream_reply(placeholder.id, user_text, history)
        if failure is not None:
            self.state.error = reply

        self.state.in_flight -= 1
        self._notify()

        bot_message = None
        if known_ids is not None:
            self._persisting[placeholder.id] = (reply, known_ids)
        try:
            bot_message = await self._messages.append(session_id, Sender.BOT, reply)
        except MeneChatException as e:
            self.state.warning = f"Reply could not be saved: {e.message}"
            logger.warning(
                f"{__name__}:send_message - Reply not persisted",
                extra={"session_id": session_id, "error_msg": e.message},
            )
        finally:
            self._persisting.pop(placeholder.id, None)

        self.state.placeholders.pop(placeholder.id, None)
        if bot_message is not None:
            self._merge_message(bot_message)
        self._notify()

        await self._maybe_title_session(session_id, user_text)
        return bot_message

    async def _stream_reply(
        self,
        placeholder_id: str,
        user_text: str,
        history: Sequence[Message],
    ) -> tuple[str, Exception | None]:
        stream = self._stream_factory(user_text, history)
        accumulated = ""
        pull = await stream.next()
        while True:
            if pull.fragment is not None:
                accumulated += pull.fragment
                self._update_placeholder(placeholder_id, accumulated)
            if pull.done:
                break
            pull = await stream.next()
        return accumulated or NO_RESPONSE_TEXT, pull.error

    async def _maybe_title_session(self, session_id: str, user_text: str) -> None:
        if session_id in self._titling:
            return

        session = next((s for s in self.state.sessions if s.id == session_id), None)
        if session is None:
            try:
                session = await self._sessions.get(session_id)
            except MeneChatException as e:
                logger.warning(
                    f"{__name__}:_maybe_title_session - Session lookup failed",
                    extra={"session_id": session_id, "error_msg": e.message},
                )
                return
        if session is None or not session.title_is_placeholder:
            return

        title = derive_title(
            user_text,
            max_words=self._settings.title_max_words,
            max_chars=self._settings.title_max_chars,
        )
        self._titling.add(session_id)
        try:
            renamed = await self._backoff.run(lambda: self._sessions.rename(session_id, title))
        except MeneChatException as e:
            self._titling.discard(session_id)
            self._set_error(f"Could not rename session: {e.message}")
            return

        if renamed is None:
            return
        if any(s.id == session_id for s in self.state.sessions):
            self._merge_session(renamed)
