"""Chat-related data models."""

from dataclasses import dataclass, field
from datetime import datetime

from .messages import Message
from .users import User


def ordered_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Canonical ordering of an unordered participant pair."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


@dataclass
class Chat:
    """The durable pairing of two users and their shared bookkeeping."""

    id: str
    participants: tuple[str, str]
    created_at: datetime
    updated_at: datetime
    last_message_id: str | None = None
    unread: dict[str, int] = field(default_factory=dict)
    hidden: dict[str, bool] = field(default_factory=dict)
    archived: dict[str, bool] = field(default_factory=dict)

    def includes(self, user_id: str) -> bool:
        return user_id in self.participants

    def other(self, user_id: str) -> str:
        """The participant that is not ``user_id``."""
        first, second = self.participants
        return second if user_id == first else first

    def unread_for(self, user_id: str) -> int:
        return self.unread.get(user_id, 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "participants": list(self.participants),
            "lastMessage": self.last_message_id,
            "unreadCount": dict(self.unread),
            "hiddenBy": [uid for uid, flag in self.hidden.items() if flag],
            "archivedBy": [uid for uid, flag in self.archived.items() if flag],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class ChatSummary:
    """A chat as shown in one user's chat list."""

    chat: Chat
    other_participant: User | None
    saved_name: str | None
    unread_count: int
    last_message: Message | None = None

    @property
    def display_name(self) -> str:
        if self.saved_name:
            return self.saved_name
        if self.other_participant is None:
            return "Deleted User"
        return self.other_participant.phone_number

    def to_dict(self) -> dict:
        other = self.other_participant.to_dict() if self.other_participant else {
            "id": "deleted",
            "phoneNumber": "Deleted User",
        }
        other["savedName"] = self.saved_name
        other["displayName"] = self.display_name
        data = self.chat.to_dict()
        data.update(
            {
                "otherParticipant": other,
                "unreadCount": self.unread_count,
                "lastMessage": self.last_message.to_dict() if self.last_message else None,
            }
        )
        return data
