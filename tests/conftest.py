"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory and SQLite-backed chat stores, a TestClient, scripted completion
clients, retry policies that never sleep
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

import pytest

from menechat.configs.chat import ChatSettings
from menechat.core.backoff import BackoffPolicy
from menechat.models.conversation import Message


class FakeCompletionClient:
    """
    Scripted CompletionClient.

    Args:
        reply: Fixed reply text, or a function of the user text
        error: Exception raised instead of replying
        gate: Event awaited before answering, to hold a request in flight
    """

    def __init__(
        self,
        reply: str | Callable[[str], str] = "Hi there!",
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.reply = reply
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, list[Message]]] = []

    async def complete(self, user_text: str, history: Sequence[Message]) -> str:
        self.calls.append((user_text, list(history)))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(user_text)
        return self.reply


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class SteppingClock:
    """Deterministic clock advancing one millisecond per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(milliseconds=1)
        return self.now


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_backoff(recording_sleep: RecordingSleep) -> BackoffPolicy:
    """Five-attempt policy whose sleeps return immediately."""
    return BackoffPolicy(max_attempts=5, base_delay=1.0, max_jitter=0.0, sleep=recording_sleep)


@pytest.fixture
def chat_settings() -> ChatSettings:
    """Chat settings with instant fragment reveal."""
    return ChatSettings(fragment_delay=0.0)


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def memory_store():
    """In-memory document store with a deterministic clock."""
    from menechat.boundary.memory import InMemoryChatStore

    return InMemoryChatStore(clock=SteppingClock())


@pytest.fixture
async def sql_store():
    """
    SQL chat store over an in-memory SQLite database.

    Yields:
        SqlChatStore: Store with tables created (lazy imported to avoid settings issues)
    """
    from menechat.boundary.db import SqlChatStore, get_async_engine
    from menechat.configs.database import DatabaseSettings

    engine = get_async_engine(DatabaseSettings(url="sqlite+aiosqlite:///:memory:"))
    store = SqlChatStore(engine)
    await store.create_tables()

    yield store

    await store.drop_tables()
    await store.close()


@pytest.fixture(params=["memory", "sql"])
def chat_store(request, memory_store, sql_store):
    """Both store backends, for contract tests."""
    return memory_store if request.param == "memory" else sql_store


@pytest.fixture
def api_completion_client() -> FakeCompletionClient:
    return FakeCompletionClient(reply="Hi there!")


@pytest.fixture
def api_store():
    from menechat.boundary.memory import InMemoryChatStore

    return InMemoryChatStore(clock=SteppingClock())


@pytest.fixture
def client(api_store, api_completion_client):
    """
    TestClient over the in-memory store and a scripted completion client.

    Not entered as a context manager, so the lifespan never opens the
    configured database.
    """
    from fastapi.testclient import TestClient

    from menechat.api.deps import ServiceCache, get_service_cache
    from menechat.configs.settings import Settings
    from menechat.main import app

    cache = ServiceCache(
        settings=Settings(chat=ChatSettings(fragment_delay=0.0)),
        store=api_store,
        completion_client=api_completion_client,
    )
    app.dependency_overrides[get_service_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()
