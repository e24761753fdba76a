"""
Test suite for SessionService.

System role: Verification of session use cases
"""

import pytest

from menechat.application.services.session_service import SessionService
from menechat.core.exceptions import SessionNotFoundError
from menechat.models.conversation import Sender


@pytest.fixture
def session_service(memory_store) -> SessionService:
    return SessionService(sessions=memory_store.sessions, messages=memory_store.messages)


@pytest.mark.asyncio
async def test_create_and_list_newest_first(session_service):
    first = await session_service.create_session("First")
    second = await session_service.create_session()

    sessions = await session_service.get_all_sessions()

    assert [s.id for s in sessions] == [second.id, first.id]


@pytest.mark.asyncio
async def test_delete_is_idempotent(session_service):
    session = await session_service.create_session("Doomed")

    assert await session_service.delete_session(session.id) is True
    assert await session_service.delete_session(session.id) is False
    assert await session_service.get_all_sessions() == []


@pytest.mark.asyncio
async def test_get_messages_windows_most_recent(session_service, memory_store):
    session = await session_service.create_session()
    for n in range(4):
        await memory_store.messages.append(session.id, Sender.USER, f"m{n}")

    messages = await session_service.get_messages(session.id, limit=2)

    assert [m.text for m in messages] == ["m2", "m3"]


@pytest.mark.asyncio
async def test_get_messages_of_unknown_session_raises(session_service):
    with pytest.raises(SessionNotFoundError):
        await session_service.get_messages("missing")
