"""
Chat API endpoints.

Routes:
- GET /chats - List chats, newest first
- POST /chats - Create chat
- DELETE /chats/{id} - Delete chat and its messages (idempotent)
- GET /chats/{id}/messages - List messages, ascending
- POST /chats/{id}/messages - Send a message and get the bot reply

Dependencies: menechat.application.services, menechat.models
System role: Chat management HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from menechat.api.deps import get_chat_service, get_session_service
from menechat.application.services import ChatService, SessionService
from menechat.core.exceptions import MeneChatException, SessionNotFoundError, ValidationError
from menechat.models.chat import (
    ChatMessageResponse,
    ExchangeResponse,
    MessageListResponse,
    SendMessageRequest,
)
from menechat.models.conversation import Sender
from menechat.models.session import (
    ChatListResponse,
    ChatSummary,
    CreateChatRequest,
    DeleteChatResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=ChatListResponse)
async def list_chats(
    session_service: SessionService = Depends(get_session_service),
) -> ChatListResponse:
    """
    List all chats, newest first.

    Raises:
        HTTPException(500): Retrieval failed
    """
    try:
        sessions = await session_service.get_all_sessions()
    except MeneChatException as e:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve chats: {e.message}")
    return ChatListResponse(data=[ChatSummary.from_session(s) for s in sessions])


@router.post("", response_model=ChatSummary)
async def create_chat(
    request: CreateChatRequest | None = None,
    session_service: SessionService = Depends(get_session_service),
) -> ChatSummary:
    """
    Create new chat with an optional title.

    Args:
        request: CreateChatRequest with optional title
        session_service: Injected SessionService

    Raises:
        HTTPException(500): Creation failed
    """
    title = request.title if request else None
    try:
        session = await session_service.create_session(title=title)
    except MeneChatException as e:
        raise HTTPException(status_code=500, detail=f"Chat creation failed: {e.message}")
    return ChatSummary.from_session(session)


@router.delete("/{chat_id}", response_model=DeleteChatResponse)
async def delete_chat(
    chat_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> DeleteChatResponse:
    """
    Delete chat and cascade to its messages.

    Deleting a chat that does not exist also succeeds.

    Raises:
        HTTPException(500): Deletion failed
    """
    try:
        await session_service.delete_session(chat_id)
    except MeneChatException as e:
        raise HTTPException(status_code=500, detail=f"Chat deletion failed: {e.message}")
    return DeleteChatResponse(message="Chat deleted successfully")


@router.get("/{chat_id}/messages", response_model=MessageListResponse)
async def list_messages(
    chat_id: str,
    limit: int = Query(default=100, ge=1, le=1000),
    session_service: SessionService = Depends(get_session_service),
) -> MessageListResponse:
    """
    List the most recent messages of a chat, oldest first.

    Raises:
        HTTPException(404): Chat not found
        HTTPException(500): Retrieval failed
    """
    try:
        messages = await session_service.get_messages(chat_id, limit=limit)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except MeneChatException as e:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve messages: {e.message}")
    return MessageListResponse(data=[ChatMessageResponse.from_message(m) for m in messages])


@router.post("/{chat_id}/messages", response_model=ExchangeResponse, response_model_by_alias=True)
async def send_message(
    chat_id: str,
    request: SendMessageRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ExchangeResponse:
    """
    Persist a user message, obtain the bot reply and persist it.

    A reply that could not be saved is still returned, with a null id.

    Raises:
        HTTPException(400): Missing message content
        HTTPException(404): Chat not found
        HTTPException(500): User message could not be saved
    """
    try:
        result = await chat_service.send(chat_id, request.content)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except MeneChatException as e:
        logger.error(
            f"{__name__}:send_message - Exchange failed: {e}",
            extra={"chat_id": chat_id},
        )
        raise HTTPException(status_code=500, detail=f"Message exchange failed: {e.message}")

    bot_response = ChatMessageResponse(
        id=result.bot_message.id if result.bot_message else None,
        sender=Sender.BOT,
        text=result.reply_text,
    )
    return ExchangeResponse(bot_response=bot_response)
