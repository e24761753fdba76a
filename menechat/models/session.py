"""
Session API schemas.

Request/response schemas for chat session operations.

Dependencies: pydantic
System role: Session API contracts
"""

from pydantic import BaseModel, Field

from menechat.models.conversation import Session


class CreateChatRequest(BaseModel):
    """Request schema for creating a new chat session."""

    title: str | None = Field(default=None, description="Optional chat title")


class ChatSummary(BaseModel):
    """Chat session as listed in the sidebar."""

    id: str
    name: str

    @classmethod
    def from_session(cls, session: Session) -> "ChatSummary":
        return cls(id=session.id, name=session.title)


class ChatListResponse(BaseModel):
    """Response schema for listing chat sessions, newest first."""

    data: list[ChatSummary]


class DeleteChatResponse(BaseModel):
    """Response schema for chat deletion."""

    message: str
