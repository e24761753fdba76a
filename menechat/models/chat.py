"""
Chat message schemas.

Request/response schemas for message listing and exchanges.

Dependencies: pydantic
System role: Chat API contracts
"""

from pydantic import BaseModel, ConfigDict, Field

from menechat.models.conversation import Message, Sender


class SendMessageRequest(BaseModel):
    """Request schema for sending a user message."""

    content: str | None = Field(default=None, description="User message text")


class ChatMessageResponse(BaseModel):
    """Single chat message in history."""

    id: str | None = Field(description="Message id, null when the message was not persisted")
    sender: Sender
    text: str

    @classmethod
    def from_message(cls, message: Message) -> "ChatMessageResponse":
        return cls(id=message.id, sender=message.sender, text=message.text)


class MessageListResponse(BaseModel):
    """Response schema for a chat's messages, ascending."""

    data: list[ChatMessageResponse]


class ExchangeResponse(BaseModel):
    """Response schema for a completed message exchange."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Message exchange complete"
    bot_response: ChatMessageResponse = Field(alias="botResponse")
