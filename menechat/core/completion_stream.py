"""
Lazy, non-restartable stream over one model completion.

The first pull performs the network call (through BackoffPolicy); the full
reply is then revealed fragment by fragment. Whitespace runs are kept as
their own fragments so the concatenation reproduces the reply exactly.

Dependencies: menechat.core.backoff
System role: Incremental reveal of completion replies
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from menechat.core.backoff import BackoffPolicy
from menechat.core.exceptions import StreamExhaustedError
from menechat.models.conversation import Message

logger = logging.getLogger(__name__)

ERROR_MARKER_PREFIX = "ERROR:"
NO_RESPONSE_TEXT = "No response received from AI."
_WHITESPACE_RUN = re.compile(r"(\s+)")


class CompletionClient(Protocol):
    """Anything that turns a history plus a new user turn into one reply."""

    async def complete(self, user_text: str, history: Sequence[Message]) -> str:
        ...


class StreamState(str, Enum):
    """Lifecycle of a CompletionStream."""

    PENDING = "pending"
    HAS_NEXT = "has_next"
    DONE = "done"


@dataclass(frozen=True)
class StreamPull:
    """
    Result of one pull.

    Attributes:
        fragment: Next piece of text, None on the final successful pull
        done: True when the stream is finished
        full_text: Complete reply, set only when done
        error: Failure behind an error marker, if any
    """

    fragment: str | None
    done: bool
    full_text: str | None = None
    error: Exception | None = None


def split_fragments(text: str) -> list[str]:
    """
    Partition text into words and whitespace runs.

    Args:
        text: Full reply text

    Returns:
        list[str]: Non-empty fragments whose concatenation equals text
    """
    return [piece for piece in _WHITESPACE_RUN.split(text) if piece]


def error_marker(exc: Exception) -> str:
    """Human-readable text shown (and persisted) in place of a failed reply."""
    details = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    return f"{ERROR_MARKER_PREFIX} Failed to connect to AI. Details: {details}"


def is_error_marker(text: str) -> bool:
    return text.startswith("ERROR")


class CompletionStream:
    """
    Pull-based stream of text fragments for a single exchange.

    Usage:
        stream = CompletionStream("Hello", history, client, backoff)
        pull = await stream.next()
        while not pull.done:
            render(pull.fragment)
            pull = await stream.next()
    """

    def __init__(
        self,
        user_text: str,
        history: Sequence[Message],
        client: CompletionClient,
        backoff: BackoffPolicy | None = None,
        fragment_delay: float = 0.02,
    ) -> None:
        """
        Initialize stream without performing any I/O.

        Args:
            user_text: New user turn
            history: Prior messages of the session, ascending
            client: Completion client performing the request
            backoff: Retry policy around the fetch
            fragment_delay: Pause before each fragment after the first
        """
        self.user_text = user_text
        self.history = list(history)
        self._client = client
        self._backoff = backoff or BackoffPolicy()
        self._fragment_delay = fragment_delay
        self._state = StreamState.PENDING
        self._full_text: str | None = None
        self._fragments: list[str] = []
        self._index = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def full_text(self) -> str | None:
        return self._full_text

    async def _fetch(self) -> StreamPull | None:
        try:
            reply = await self._backoff.run(
                lambda: self._client.complete(self.user_text, self.history)
            )
        except Exception as e:
            logger.error(
                f"{__name__}:_fetch - Completion failed: {type(e).__name__}: {e}",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
            marker = error_marker(e)
            self._full_text = marker
            self._state = StreamState.DONE
            return StreamPull(fragment=marker, done=True, full_text=marker, error=e)

        self._full_text = reply
        self._fragments = split_fragments(reply)
        self._state = StreamState.HAS_NEXT
        logger.debug(
            f"{__name__}:_fetch - Reply received",
            extra={"reply_len": len(reply), "fragments": len(self._fragments)},
        )
        return None

    async def next(self) -> StreamPull:
        """
        Pull the next fragment.

        Returns:
            StreamPull: Next fragment, or the final done pull

        Raises:
            StreamExhaustedError: If the stream already finished
        """
        if self._state is StreamState.DONE:
            raise StreamExhaustedError("Completion stream already exhausted")

        if self._state is StreamState.PENDING:
            failed = await self._fetch()
            if failed is not None:
                return failed
        elif self._fragment_delay > 0:
            await asyncio.sleep(self._fragment_delay)

        if self._index >= len(self._fragments):
            self._state = StreamState.DONE
            return StreamPull(fragment=None, done=True, full_text=self._full_text)

        fragment = self._fragments[self._index]
        self._index += 1
        return StreamPull(fragment=fragment, done=False)

    async def __aiter__(self) -> AsyncIterator[str]:
        pull = await self.next()
        while True:
            if pull.fragment is not None:
                yield pull.fragment
            if pull.done:
                return
            pull = await self.next()
