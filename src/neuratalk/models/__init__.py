"""
Conversation data models.
"""
from .turn import (
    ASSISTANT_MARKER,
    SEPARATOR,
    USER_MARKER,
    SessionStatus,
    Speaker,
    Turn,
    format_turns,
    parse_turns,
)

__all__ = [
    "ASSISTANT_MARKER",
    "SEPARATOR",
    "USER_MARKER",
    "SessionStatus",
    "Speaker",
    "Turn",
    "format_turns",
    "parse_turns",
]
