"""
Test suite for InMemoryChatStore specifics.

System role: Verification of the in-memory document backend
"""

from datetime import datetime, timezone

import pytest

from menechat.boundary.memory import InMemoryChatStore
from menechat.models.conversation import Sender

FROZEN = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def frozen_store() -> InMemoryChatStore:
    """Store whose clock never advances, so every timestamp ties."""
    return InMemoryChatStore(clock=lambda: FROZEN)


@pytest.mark.asyncio
async def test_equal_timestamps_list_later_session_first(frozen_store):
    first = await frozen_store.sessions.create(title="First")
    second = await frozen_store.sessions.create(title="Second")

    sessions = await frozen_store.sessions.list()

    assert [s.id for s in sessions] == [second.id, first.id]


@pytest.mark.asyncio
async def test_equal_timestamps_list_messages_in_insertion_order(frozen_store):
    session = await frozen_store.sessions.create()
    for text in ("a", "b", "c"):
        await frozen_store.messages.append(session.id, Sender.USER, text)

    messages = await frozen_store.messages.list(session.id)

    assert [m.text for m in messages] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_returned_records_are_copies(frozen_store):
    session = await frozen_store.sessions.create(title="Original")
    session.title = "Mutated"

    stored = await frozen_store.sessions.get(session.id)

    assert stored.title == "Original"


@pytest.mark.asyncio
async def test_ping_and_close(frozen_store):
    assert await frozen_store.ping() is True
    await frozen_store.close()
