"""
In-memory document store backend.

Exports:
  - InMemoryChatStore: push-capable session and message stores
"""

from menechat.boundary.memory.memory_store import (
    InMemoryChatStore,
    InMemoryMessageStore,
    InMemorySessionStore,
)

__all__ = ["InMemoryChatStore", "InMemoryMessageStore", "InMemorySessionStore"]
