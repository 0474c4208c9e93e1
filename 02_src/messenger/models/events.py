"""Realtime event and command names."""

from enum import Enum


class Event(str, Enum):
    """Outbound events published to per-user channels."""

    NEW_MESSAGE = "newMessage"
    MESSAGE_SENT = "messageSent"
    MESSAGE_STATUS_UPDATE = "messageStatusUpdate"
    MESSAGES_READ = "messagesRead"
    MESSAGE_REACTION = "messageReaction"
    MESSAGE_REACTION_REMOVED = "messageReactionRemoved"
    MESSAGE_DELETED = "messageDeleted"
    USER_STATUS_CHANGE = "userStatusChange"
    PROFILE_UPDATED = "profileUpdated"
    TYPING = "typing"


class Command(str, Enum):
    """Inbound commands accepted on a realtime connection."""

    JOIN = "join"
    TYPING = "typing"
    STOP_TYPING = "stopTyping"
    MESSAGE_READ = "messageRead"
    PING = "ping"
