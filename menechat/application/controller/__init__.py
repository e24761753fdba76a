"""Conversation controller: local state reconciled with the stores."""

from .controller import ConversationController
from .state import ConversationState
from .titles import derive_title

__all__ = [
    "ConversationController",
    "ConversationState",
    "derive_title",
]
