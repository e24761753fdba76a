"""
Push notification of store mutations.

Stores publish a ChangeEvent after every committed write; readers such as
the conversation controller subscribe and re-read the affected collection.

Dependencies: pydantic
System role: Store-to-reader change notification
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Collection that changed."""

    SESSIONS = "sessions"
    MESSAGES = "messages"


class ChangeOp(str, Enum):
    """Kind of mutation."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ChangeEvent(BaseModel):
    """
    Notification describing one committed mutation.

    Attributes:
        kind: Collection that changed
        op: Mutation type
        session_id: Affected session (owner session for message events)
    """

    kind: ChangeKind
    op: ChangeOp
    session_id: str | None = None


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


class ChangeFeed:
    """Subscription registry delivering ChangeEvents in subscription order."""

    def __init__(self) -> None:
        self._subscribers: dict[int, ChangeCallback] = {}
        self._next_token = 0

    def on_change(self, callback: ChangeCallback) -> Callable[[], None]:
        """
        Register a callback for every future change.

        Args:
            callback: Sync or async callable receiving the ChangeEvent

        Returns:
            Callable: Unsubscribe handle (safe to call more than once)
        """
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: ChangeEvent) -> None:
        """
        Deliver event to all current subscribers.

        A failing subscriber is logged and skipped; it never fails the writer.

        Args:
            event: Change to deliver
        """
        for callback in list(self._subscribers.values()):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception(
                    "Change subscriber failed",
                    extra={
                        "kind": event.kind.value,
                        "op": event.op.value,
                        "error_type": type(e).__name__,
                        "error_msg": str(e),
                    },
                )
