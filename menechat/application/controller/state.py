"""
Conversation controller state.

Explicit, serializable state owned by ConversationController. The
presentation layer only ever sees deep-copied snapshots of it.

Dependencies: pydantic, menechat.models
System role: Client-side conversation view model
"""

from pydantic import BaseModel, Field, computed_field

from menechat.models.conversation import Message, Placeholder, Session


class ConversationState(BaseModel):
    """
    Local view of sessions, the selected conversation and in-flight exchanges.

    Attributes:
        sessions: Sessions newest first, as last read from the store
        current_session_id: Selected session
        messages: Authoritative message window of the selected session
        placeholders: Streaming bot replies keyed by temporary id, in creation order
        input_buffer: Pending user input
        in_flight: Number of running exchanges
        error: Most recent error banner
        warning: Partial-success banner (reply generated but not saved)
    """

    sessions: list[Session] = Field(default_factory=list)
    current_session_id: str | None = None
    messages: list[Message] = Field(default_factory=list)
    placeholders: dict[str, Placeholder] = Field(default_factory=dict)
    input_buffer: str = ""
    in_flight: int = 0
    error: str | None = None
    warning: str | None = None

    @computed_field
    @property
    def is_typing(self) -> bool:
        return self.in_flight > 0

    @computed_field
    @property
    def visible_messages(self) -> list[Message | Placeholder]:
        """Authoritative messages followed by this session's streaming placeholders."""
        pending = [
            placeholder
            for placeholder in self.placeholders.values()
            if placeholder.session_id == self.current_session_id
        ]
        return [*self.messages, *pending]

    @property
    def current_session(self) -> Session | None:
        for session in self.sessions:
            if session.id == self.current_session_id:
                return session
        return None
