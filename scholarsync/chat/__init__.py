"""Course chat rooms."""

from .models import CHAT_TABLES_CQL, ChatMessage


__all__ = [
    "CHAT_TABLES_CQL",
    "ChatMessage",
]
