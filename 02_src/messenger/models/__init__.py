"""Core data models for the messenger."""

from .chats import Chat, ChatSummary, ordered_pair
from .events import Command, Event
from .messages import (
    DELETED_PLACEHOLDER,
    EmojiPayload,
    MediaDescriptor,
    MediaPayload,
    Message,
    MessageKind,
    MessagePayload,
    MessageStatus,
    TextPayload,
    payload_from_dict,
    sanitize_text,
)
from .tracing import TraceEvent
from .users import Contact, LastSeenVisibility, User

__all__ = [
    # Users
    "User",
    "Contact",
    "LastSeenVisibility",
    # Chats
    "Chat",
    "ChatSummary",
    "ordered_pair",
    # Messages
    "Message",
    "MessageKind",
    "MessageStatus",
    "MessagePayload",
    "MediaDescriptor",
    "TextPayload",
    "EmojiPayload",
    "MediaPayload",
    "payload_from_dict",
    "sanitize_text",
    "DELETED_PLACEHOLDER",
    # Realtime
    "Event",
    "Command",
    # Tracing
    "TraceEvent",
]
