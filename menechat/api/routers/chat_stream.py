"""
WebSocket streaming chat endpoint.

Provides real-time token streaming for chat replies using WebSocket.

Routes: WS /ws/chats/{chat_id}/stream

Dependencies: menechat.application.services.chat_service
System role: WebSocket streaming HTTP API
"""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from menechat.api.deps import ServiceCache, build_chat_service, get_service_cache
from menechat.core.exceptions import (
    ConfigurationError,
    MeneChatException,
    SessionNotFoundError,
    ValidationError,
)
from menechat.models.streaming import (
    ClientEventType,
    StreamEventType,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["streaming"])


def _error(code: str, message: str) -> dict:
    return {
        "event": StreamEventType.ERROR.value,
        "data": {"code": code, "message": message},
    }


@router.websocket("/ws/chats/{chat_id}/stream")
async def websocket_chat(
    websocket: WebSocket,
    chat_id: str,
    cache: ServiceCache = Depends(get_service_cache),
) -> None:
    """
    WebSocket endpoint for streaming chat replies.

    Client sends:
        {"event": "chat", "data": {"message": "..."}}
        {"event": "ping"}

    Server sends:
        {"event": "connected", "data": {"chat_id": "..."}}
        {"event": "token", "data": {"token": "...", "index": 0}}
        {"event": "complete", "data": {"full_answer": "...", "message_id": "..."}}
        {"event": "error", "data": {"code": "...", "message": "..."}}
        {"event": "pong", "data": {}}

    Args:
        websocket: WebSocket connection
        chat_id: Chat id from path
        cache: Injected service cache
    """
    await websocket.accept()
    logger.info(
        "WebSocket connection established",
        extra={"chat_id": chat_id, "client_host": websocket.client},
    )

    await websocket.send_json({
        "event": StreamEventType.CONNECTED.value,
        "data": {"chat_id": chat_id},
    })

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                data = json.loads(raw_data)
            except json.JSONDecodeError as e:
                logger.warning(
                    "Failed to parse JSON",
                    extra={"chat_id": chat_id, "error_msg": str(e), "raw_data_preview": raw_data[:50]},
                )
                await websocket.send_json(_error("INVALID_JSON", "Invalid JSON format"))
                continue

            event_type = data.get("event") if isinstance(data, dict) else None

            if event_type == ClientEventType.PING.value:
                await websocket.send_json({"event": StreamEventType.PONG.value, "data": {}})
                continue

            if event_type != ClientEventType.CHAT.value:
                logger.warning(
                    "Unknown event type received",
                    extra={"chat_id": chat_id, "event_type": str(event_type)},
                )
                await websocket.send_json(
                    _error("UNKNOWN_EVENT", f"Unknown event type: {event_type}")
                )
                continue

            event_data = data.get("data") or {}
            message = event_data.get("message") if isinstance(event_data, dict) else None
            if not isinstance(message, str) or not message.strip():
                await websocket.send_json(_error("MISSING_MESSAGE", "Message is required"))
                continue

            try:
                chat_service = build_chat_service(cache)
            except ConfigurationError as e:
                await websocket.send_json(_error("SERVICE_ERROR", e.message))
                continue

            try:
                event_count = 0
                async for event in chat_service.stream_chat(chat_id, message):
                    event_count += 1
                    await websocket.send_json(event.to_dict())
                logger.info(
                    "Chat stream completed",
                    extra={"chat_id": chat_id, "total_events": event_count},
                )
            except SessionNotFoundError as e:
                await websocket.send_json(_error("SESSION_NOT_FOUND", e.message))
            except ValidationError as e:
                await websocket.send_json(_error("MISSING_MESSAGE", e.message))
            except MeneChatException as e:
                logger.exception(
                    "Error during chat stream",
                    extra={"chat_id": chat_id, "error_type": type(e).__name__},
                )
                await websocket.send_json(_error("PROCESSING_ERROR", e.message))

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected", extra={"chat_id": chat_id})
