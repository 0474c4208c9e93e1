"""Tests for data models."""

from datetime import datetime, timezone

import pytest

from messenger.errors import ValidationError
from messenger.models import (
    Chat,
    ChatSummary,
    EmojiPayload,
    LastSeenVisibility,
    MediaDescriptor,
    MediaPayload,
    Message,
    MessageKind,
    MessageStatus,
    TextPayload,
    User,
    ordered_pair,
    payload_from_dict,
    sanitize_text,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestPayloads:
    """Tests for payload variants."""

    def test_text_payload_is_trimmed(self):
        """Text is stripped of surrounding whitespace."""
        assert TextPayload("  hello  ").text == "hello"

    def test_text_payload_rejects_blank(self):
        """Blank text is a validation error."""
        with pytest.raises(ValidationError):
            TextPayload("   ")

    def test_text_payload_rejects_oversize(self):
        """Text over 4096 characters is rejected."""
        with pytest.raises(ValidationError):
            TextPayload("x" * 4097)

    def test_text_payload_accepts_limit(self):
        assert len(TextPayload("x" * 4096).text) == 4096

    def test_script_blocks_are_removed(self):
        assert sanitize_text("hi<script>alert(1)</script> there") == "hi there"

    def test_limit_applies_after_trimming(self):
        """Surrounding whitespace does not count toward the limit."""
        assert len(TextPayload("  " + "x" * 4096 + "\n").text) == 4096

    def test_whitespace_around_script_is_trimmed(self):
        assert sanitize_text("<script>x</script>  hi  ") == "hi"
        assert sanitize_text("  <script>x</script>  ") == ""

    def test_emoji_payload(self):
        payload = EmojiPayload("👍")
        assert payload.kind == MessageKind.EMOJI
        assert payload.media is None

    def test_media_payload_requires_url(self):
        """Media without URL is rejected."""
        with pytest.raises(ValidationError):
            MediaPayload(
                kind=MessageKind.IMAGE,
                media=MediaDescriptor(url="", mime_type="image/png"),
            )

    def test_media_payload_rejects_text_kind(self):
        with pytest.raises(ValidationError):
            MediaPayload(
                kind=MessageKind.TEXT,
                media=MediaDescriptor(url="https://cdn/x.png", mime_type="image/png"),
            )

    def test_media_payload_caption_optional(self):
        payload = MediaPayload(
            kind=MessageKind.AUDIO,
            media=MediaDescriptor(url="https://cdn/a.ogg", mime_type="audio/ogg", duration=3.5),
        )
        assert payload.text == ""
        assert payload.media.duration == 3.5


class TestPayloadFromDict:
    """Tests for payload_from_dict()."""

    def test_defaults_to_text(self):
        payload = payload_from_dict({"text": "hi"})
        assert isinstance(payload, TextPayload)

    def test_builds_media_payload(self):
        """camelCase media keys are accepted."""
        payload = payload_from_dict(
            {
                "type": "video",
                "text": "look",
                "media": {"url": "https://cdn/v.mp4", "mimeType": "video/mp4", "size": 10},
            }
        )
        assert isinstance(payload, MediaPayload)
        assert payload.kind == MessageKind.VIDEO
        assert payload.media.mime_type == "video/mp4"
        assert payload.text == "look"

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            payload_from_dict({"type": "sticker", "text": "x"})

    def test_media_kind_without_media_rejected(self):
        with pytest.raises(ValidationError):
            payload_from_dict({"type": "image", "text": "caption only"})

    def test_non_string_text_rejected(self):
        with pytest.raises(ValidationError):
            payload_from_dict({"type": "text", "text": 42})


class TestMessageStatus:
    """Tests for the status order."""

    def test_forward_transitions(self):
        assert MessageStatus.SENT.advances_to(MessageStatus.DELIVERED)
        assert MessageStatus.SENT.advances_to(MessageStatus.READ)
        assert MessageStatus.DELIVERED.advances_to(MessageStatus.READ)

    def test_no_backward_or_same(self):
        assert not MessageStatus.READ.advances_to(MessageStatus.DELIVERED)
        assert not MessageStatus.DELIVERED.advances_to(MessageStatus.DELIVERED)


class TestMessage:
    """Tests for Message."""

    def _message(self, **kwargs) -> Message:
        defaults = dict(
            id="m1", chat_id="c1", sender_id="alice", kind=MessageKind.TEXT, created_at=NOW
        )
        defaults.update(kwargs)
        return Message(**defaults)

    def test_validate_requires_content(self):
        """A message needs text or a media URL."""
        with pytest.raises(ValidationError):
            self._message().validate()

    def test_validate_accepts_media_only(self):
        self._message(
            kind=MessageKind.IMAGE,
            media=MediaDescriptor(url="https://cdn/x.png", mime_type="image/png"),
        ).validate()

    def test_visible_to(self):
        """Deleted-for-me hides the message; deleted-for-everyone does not."""
        message = self._message(text="hi", deleted_for={"bob"})
        assert message.visible_to("alice")
        assert not message.visible_to("bob")

        message.is_deleted = True
        assert message.visible_to("bob")

    def test_to_payload_round_trips_content(self):
        message = self._message(kind=MessageKind.EMOJI, text="🎉")
        payload = message.to_payload()
        assert isinstance(payload, EmojiPayload)
        assert payload.text == "🎉"

    def test_to_dict_uses_wire_names(self):
        message = self._message(text="hi", reactions={"bob": "❤️"}, forwarded_from="m0")
        data = message.to_dict()
        assert data["chatId"] == "c1"
        assert data["type"] == "text"
        assert data["status"] == "sent"
        assert data["reactions"] == [{"userId": "bob", "emoji": "❤️"}]
        assert data["forwardedFrom"] == "m0"


class TestUserPrivacy:
    """Tests for last-seen privacy projection."""

    def test_everyone_sees_last_seen(self):
        user = User(id="u", phone_number="1", last_seen=NOW)
        assert user.visible_last_seen(viewer_is_contact=False) == NOW

    def test_contacts_only(self):
        user = User(
            id="u",
            phone_number="1",
            last_seen=NOW,
            last_seen_visibility=LastSeenVisibility.CONTACTS,
        )
        assert user.visible_last_seen(viewer_is_contact=True) == NOW
        assert user.visible_last_seen(viewer_is_contact=False) is None

    def test_nobody(self):
        user = User(
            id="u",
            phone_number="1",
            is_online=True,
            last_seen=NOW,
            last_seen_visibility=LastSeenVisibility.NOBODY,
        )
        projected = user.as_seen_by(viewer_is_contact=True)
        assert projected.last_seen is None
        assert projected.is_online is True
        # Original untouched
        assert user.last_seen == NOW


class TestChat:
    """Tests for Chat and ChatSummary."""

    def test_ordered_pair_is_order_independent(self):
        assert ordered_pair("b", "a") == ordered_pair("a", "b") == ("a", "b")

    def test_other(self):
        chat = Chat(id="c", participants=("alice", "bob"), created_at=NOW, updated_at=NOW)
        assert chat.other("alice") == "bob"
        assert chat.other("bob") == "alice"
        assert chat.unread_for("alice") == 0

    def test_display_name_prefers_saved_name(self):
        chat = Chat(id="c", participants=("alice", "bob"), created_at=NOW, updated_at=NOW)
        bob = User(id="bob", phone_number="+2")
        assert ChatSummary(chat, bob, "Bobby", 0).display_name == "Bobby"
        assert ChatSummary(chat, bob, None, 0).display_name == "+2"
        assert ChatSummary(chat, None, None, 0).display_name == "Deleted User"
