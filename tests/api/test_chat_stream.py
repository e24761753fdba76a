"""
Test suite for the WebSocket streaming endpoint.

System role: Verification of streaming event protocol
"""

from menechat.core.exceptions import ApiError


def _drain_until_complete(ws) -> list[dict]:
    events = []
    while True:
        event = ws.receive_json()
        events.append(event)
        if event["event"] == "complete":
            return events


def test_connect_and_ping(client):
    with client.websocket_connect("/ws/chats/abc/stream") as ws:
        assert ws.receive_json() == {"event": "connected", "data": {"chat_id": "abc"}}

        ws.send_json({"event": "ping"})

        assert ws.receive_json() == {"event": "pong", "data": {}}


def test_stream_tokens_then_complete(client, api_store):
    chat = client.post("/api/chats").json()

    with client.websocket_connect(f"/ws/chats/{chat['id']}/stream") as ws:
        ws.receive_json()
        ws.send_json({"event": "chat", "data": {"message": "Hello"}})
        events = _drain_until_complete(ws)

    tokens = [e["data"]["token"] for e in events if e["event"] == "token"]
    assert "".join(tokens) == "Hi there!"
    assert events[-1]["data"]["full_answer"] == "Hi there!"
    assert events[-1]["data"]["message_id"] is not None


def test_stream_failure_sends_error_then_complete(client, api_completion_client):
    api_completion_client.error = ApiError("API Error 400: bad", status=400)
    chat = client.post("/api/chats").json()

    with client.websocket_connect(f"/ws/chats/{chat['id']}/stream") as ws:
        ws.receive_json()
        ws.send_json({"event": "chat", "data": {"message": "Hello"}})
        events = _drain_until_complete(ws)

    assert [e["event"] for e in events] == ["error", "complete"]
    assert events[0]["data"]["code"] == "COMPLETION_ERROR"
    assert events[1]["data"]["full_answer"].startswith("ERROR:")


def test_protocol_errors(client):
    chat = client.post("/api/chats").json()

    with client.websocket_connect(f"/ws/chats/{chat['id']}/stream") as ws:
        ws.receive_json()

        ws.send_text("not json")
        assert ws.receive_json()["data"]["code"] == "INVALID_JSON"

        ws.send_json({"event": "dance"})
        assert ws.receive_json()["data"]["code"] == "UNKNOWN_EVENT"

        ws.send_json({"event": "chat", "data": {"message": "   "}})
        assert ws.receive_json()["data"]["code"] == "MISSING_MESSAGE"


def test_unknown_chat(client):
    with client.websocket_connect("/ws/chats/missing/stream") as ws:
        ws.receive_json()
        ws.send_json({"event": "chat", "data": {"message": "Hello"}})

        event = ws.receive_json()

    assert event["event"] == "error"
    assert event["data"]["code"] == "SESSION_NOT_FOUND"
