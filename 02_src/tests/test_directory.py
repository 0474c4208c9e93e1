"""Tests for ChatDirectory and IdentityStore."""

from datetime import datetime, timezone

import pytest

from messenger.errors import AuthorizationError, NotFoundError, ValidationError
from messenger.models import Message, MessageKind


class TestIdentityStore:
    """Tests for identity lookups."""

    async def test_resolve_user(self, identity, users):
        user = await identity.resolve_user("alice")
        assert user.name == "Alice"

    async def test_resolve_unknown_user(self, identity, users):
        with pytest.raises(NotFoundError):
            await identity.resolve_user("ghost")

    async def test_find_by_phone_trims(self, identity, users):
        user = await identity.find_by_phone("  +15550002 ")
        assert user.id == "bob"

    async def test_find_by_unknown_phone(self, identity, users):
        assert await identity.find_by_phone("+0") is None


class TestChatDirectory:
    """Tests for the pair -> chat mapping."""

    async def test_self_chat_rejected(self, directory, users):
        with pytest.raises(ValidationError):
            await directory.get_or_create("alice", "alice")

    async def test_get_or_create_idempotent(self, directory, users):
        first = await directory.get_or_create("alice", "bob")
        second = await directory.get_or_create("bob", "alice")
        assert first.id == second.id

    async def test_find(self, directory, users):
        assert await directory.find("alice", "bob") is None
        chat = await directory.get_or_create("alice", "bob")
        assert (await directory.find("bob", "alice")).id == chat.id
        assert await directory.find("alice", "alice") is None

    async def test_get_unknown_chat(self, directory):
        with pytest.raises(NotFoundError):
            await directory.get("nope")

    async def test_get_for_non_participant(self, directory, users):
        chat = await directory.get_or_create("alice", "bob")
        with pytest.raises(AuthorizationError):
            await directory.get_for_participant(chat.id, "carol")

    async def test_contacts_of(self, directory, users):
        await directory.get_or_create("alice", "bob")
        await directory.get_or_create("alice", "carol")
        assert await directory.contacts_of("alice") == {"bob", "carol"}
        assert await directory.contacts_of("carol") == {"alice"}

    async def test_hide_is_idempotent(self, directory, users):
        chat = await directory.get_or_create("alice", "bob")
        await directory.hide(chat.id, "alice")
        await directory.hide(chat.id, "alice")
        assert await directory.list_for("alice") == []
        assert [c.id for c in await directory.list_for("bob")] == [chat.id]

    async def test_hide_requires_participation(self, directory, users):
        chat = await directory.get_or_create("alice", "bob")
        with pytest.raises(AuthorizationError):
            await directory.hide(chat.id, "carol")

    async def test_toggle_archive(self, directory, users):
        chat = await directory.get_or_create("alice", "bob")
        assert await directory.toggle_archive(chat.id, "alice") is True
        assert [c.id for c in await directory.list_archived("alice")] == [chat.id]
        assert await directory.toggle_archive(chat.id, "alice") is False
        assert await directory.list_archived("alice") == []

    async def test_record_message_unhides(self, directory, users):
        """A new message un-hides the chat for both sides."""
        chat = await directory.get_or_create("alice", "bob")
        await directory.hide(chat.id, "alice")
        await directory.hide(chat.id, "bob")

        await directory.record_message(chat, "m1", datetime.now(timezone.utc))

        chat = await directory.get(chat.id)
        assert chat.last_message_id == "m1"
        assert chat.hidden == {"alice": False, "bob": False}

    async def test_recount_unread_after_read(self, directory, message_store, users):
        chat = await directory.get_or_create("alice", "bob")
        message = Message(
            id="m1",
            chat_id=chat.id,
            sender_id="alice",
            kind=MessageKind.TEXT,
            created_at=datetime.now(timezone.utc),
            text="hi",
        )
        await message_store.create(message)
        assert (await directory.get(chat.id)).unread == {"alice": 0, "bob": 1}

        await message_store.mark_read(chat.id, "bob")
        assert await directory.recount_unread(chat.id, "bob") == 0
        assert (await directory.get(chat.id)).unread["bob"] == 0
