"""
Test suite for SqlChatStore specifics.

Uses in-memory SQLite through aiosqlite.

System role: Verification of the relational backend
"""

import pytest

from menechat.core.exceptions import PersistenceError
from menechat.models.conversation import Sender


@pytest.mark.asyncio
async def test_ids_are_opaque_strings(sql_store):
    session = await sql_store.sessions.create()
    message = await sql_store.messages.append(session.id, Sender.USER, "Hello")

    assert isinstance(session.id, str) and session.id.isdigit()
    assert isinstance(message.id, str)
    assert message.session_id == session.id


@pytest.mark.asyncio
async def test_ping_reports_reachable_database(sql_store):
    assert await sql_store.ping() is True


@pytest.mark.asyncio
async def test_driver_errors_surface_as_persistence_error(sql_store):
    # Arrange
    await sql_store.drop_tables()

    # Act / Assert
    with pytest.raises(PersistenceError) as exc_info:
        await sql_store.sessions.list()

    assert exc_info.value.details["operation"] == "list_sessions"
    await sql_store.create_tables()


@pytest.mark.asyncio
async def test_malformed_id_lists_no_messages(sql_store):
    assert await sql_store.messages.list("not-an-id") == []
