"""
Core business logic module.

Contains the exception hierarchy, retry policy, completion streaming,
store ports and the change feed shared by every backend.
"""

from menechat.core.exceptions import (
    MeneChatException,
    ValidationError,
    ConfigurationError,
    NetworkError,
    ApiError,
    PersistenceError,
    SessionNotFoundError,
    StreamExhaustedError,
)

from menechat.core.backoff import BackoffPolicy, is_retryable
from menechat.core.change_feed import ChangeEvent, ChangeFeed, ChangeKind, ChangeOp
from menechat.core.completion_stream import (
    CompletionClient,
    CompletionStream,
    StreamPull,
    StreamState,
)
from menechat.core.stores import MessageStore, SessionStore

__all__ = [
    # Exceptions
    "MeneChatException",
    "ValidationError",
    "ConfigurationError",
    "NetworkError",
    "ApiError",
    "PersistenceError",
    "SessionNotFoundError",
    "StreamExhaustedError",
    # Retry
    "BackoffPolicy",
    "is_retryable",
    # Change notifications
    "ChangeEvent",
    "ChangeFeed",
    "ChangeKind",
    "ChangeOp",
    # Completion
    "CompletionClient",
    "CompletionStream",
    "StreamPull",
    "StreamState",
    # Store ports
    "SessionStore",
    "MessageStore",
]
