"""Message-related data models and payload variants."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

from ..config import MAX_TEXT_LENGTH
from ..errors import ValidationError

DELETED_PLACEHOLDER = "This message was deleted"

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)


class MessageKind(str, Enum):
    """Kind of message content."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    EMOJI = "emoji"

    @property
    def is_media(self) -> bool:
        return self in (MessageKind.IMAGE, MessageKind.AUDIO, MessageKind.VIDEO)


class MessageStatus(str, Enum):
    """Delivery status. Only ever moves forward: sent -> delivered -> read."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def advances_to(self, other: "MessageStatus") -> bool:
        """True if ``other`` is strictly after this status."""
        return other.rank > self.rank


_STATUS_RANK = {
    MessageStatus.SENT: 0,
    MessageStatus.DELIVERED: 1,
    MessageStatus.READ: 2,
}


@dataclass(frozen=True)
class MediaDescriptor:
    """An already-stored media file, as returned by the upload service."""

    url: str
    mime_type: str
    size: int | None = None
    thumbnail: str | None = None
    duration: float | None = None  # audio/video, seconds

    @classmethod
    def from_dict(cls, data: dict) -> "MediaDescriptor":
        return cls(
            url=data.get("url") or "",
            mime_type=data.get("mimeType") or data.get("mime_type") or "",
            size=data.get("size"),
            thumbnail=data.get("thumbnail"),
            duration=data.get("duration"),
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "mimeType": self.mime_type,
            "size": self.size,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
        }


def sanitize_text(text: str | None) -> str:
    """Trim and strip script blocks; rejects text over the length limit."""
    if not text:
        return ""
    text = _SCRIPT_TAG.sub("", text).strip()
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"Message text exceeds maximum length of {MAX_TEXT_LENGTH} characters"
        )
    return text


@dataclass(frozen=True)
class TextPayload:
    """Plain text message body."""

    text: str
    kind: MessageKind = field(default=MessageKind.TEXT, init=False)
    media: None = field(default=None, init=False)

    def __post_init__(self):
        text = sanitize_text(self.text)
        if not text:
            raise ValidationError("Text is required for text messages")
        object.__setattr__(self, "text", text)


@dataclass(frozen=True)
class EmojiPayload:
    """A standalone emoji message."""

    text: str
    kind: MessageKind = field(default=MessageKind.EMOJI, init=False)
    media: None = field(default=None, init=False)

    def __post_init__(self):
        text = sanitize_text(self.text)
        if not text:
            raise ValidationError("Emoji messages require an emoji")
        object.__setattr__(self, "text", text)


@dataclass(frozen=True)
class MediaPayload:
    """Image, audio or video message with an optional caption."""

    kind: MessageKind
    media: MediaDescriptor
    text: str = ""

    def __post_init__(self):
        if not isinstance(self.kind, MessageKind) or not self.kind.is_media:
            raise ValidationError(f"Invalid media message type: {self.kind}")
        if not self.media or not self.media.url:
            raise ValidationError("Media URL is required for media messages")
        if not self.media.mime_type:
            raise ValidationError("Media MIME type is required")
        if self.media.size is not None and self.media.size < 0:
            raise ValidationError("Media size must be non-negative")
        object.__setattr__(self, "text", sanitize_text(self.text))


MessagePayload = Union[TextPayload, EmojiPayload, MediaPayload]


def payload_from_dict(data: dict) -> MessagePayload:
    """Build a typed payload from a loosely-typed request body."""
    raw_kind = data.get("type") or MessageKind.TEXT.value
    try:
        kind = MessageKind(raw_kind)
    except ValueError:
        raise ValidationError("Invalid message type")

    text = data.get("text") or ""
    if not isinstance(text, str):
        raise ValidationError("Message text must be a string")

    if kind == MessageKind.TEXT:
        return TextPayload(text)
    if kind == MessageKind.EMOJI:
        return EmojiPayload(text)

    media = data.get("media")
    if not isinstance(media, dict):
        raise ValidationError("Media URL is required for media messages")
    return MediaPayload(kind=kind, media=MediaDescriptor.from_dict(media), text=text)


@dataclass
class Message:
    """A single message in a chat."""

    id: str
    chat_id: str
    sender_id: str
    kind: MessageKind
    created_at: datetime
    text: str = ""
    media: MediaDescriptor | None = None
    status: MessageStatus = MessageStatus.SENT
    reactions: dict[str, str] = field(default_factory=dict)  # user_id -> emoji
    deleted_for: set[str] = field(default_factory=set)
    is_deleted: bool = False
    forwarded_from: str | None = None
    updated_at: datetime | None = None

    def has_content(self) -> bool:
        return bool(self.text) or bool(self.media and self.media.url)

    def validate(self) -> None:
        """Check the body/media invariant."""
        if not self.has_content():
            raise ValidationError("Message must have either text or media")
        if len(self.text) > MAX_TEXT_LENGTH:
            raise ValidationError(
                f"Message text exceeds maximum length of {MAX_TEXT_LENGTH} characters"
            )

    def visible_to(self, user_id: str) -> bool:
        """Globally deleted messages stay visible (scrubbed)."""
        return self.is_deleted or user_id not in self.deleted_for

    def to_payload(self) -> MessagePayload:
        """Rebuild the content payload, e.g. for forwarding."""
        if self.kind.is_media:
            return MediaPayload(kind=self.kind, media=self.media, text=self.text)
        if self.kind == MessageKind.EMOJI:
            return EmojiPayload(self.text)
        return TextPayload(self.text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "senderId": self.sender_id,
            "type": self.kind.value,
            "text": self.text,
            "media": self.media.to_dict() if self.media else None,
            "status": self.status.value,
            "reactions": [
                {"userId": user_id, "emoji": emoji}
                for user_id, emoji in self.reactions.items()
            ],
            "deletedFor": sorted(self.deleted_for),
            "isDeleted": self.is_deleted,
            "forwardedFrom": self.forwarded_from,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
