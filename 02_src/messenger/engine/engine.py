"""MessagingEngine: send, forward, read state, reactions and deletion."""

import uuid
from datetime import datetime, timezone
from functools import partial
from typing import Iterable, Protocol

from ..config import MAX_CONTACT_NAME_LENGTH
from ..directory import IChatDirectory
from ..errors import NotFoundError, ValidationError
from ..fanout import IFanout
from ..identity import IIdentityStore
from ..logging_config import get_logger
from ..message_store import IMessageStore
from ..models import (
    Chat,
    ChatSummary,
    Contact,
    Event,
    Message,
    MessagePayload,
    MessageStatus,
    User,
)
from ..presence.registry import IPresenceRegistry
from ..tracker import ITracker
from .delivery import DeliveryScheduler

logger = get_logger(__name__)


class IMessagingEngine(Protocol):
    """Orchestrates message operations and their realtime fanout."""

    async def send(
        self,
        sender_id: str,
        recipient_id: str,
        payload: MessagePayload,
        forwarded_from: str | None = None,
    ) -> Message:
        """Create a message in the pair's chat and notify both sides."""
        ...

    async def forward(
        self, sender_id: str, original_message_id: str, recipient_ids: Iterable[str]
    ) -> list[Message]:
        """Send a copy of a message to each recipient; skip failing ones."""
        ...

    async def get_history(self, current_user_id: str, other_user_id: str) -> list[Message]:
        """Messages of the pair's chat as seen by the current user; marks them read."""
        ...

    async def update_status(
        self, message_id: str, status: MessageStatus | str, actor_id: str
    ) -> Message:
        """Recipient-reported status change (forward only)."""
        ...

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> Message:
        """Set the user's reaction and notify both participants."""
        ...

    async def remove_reaction(self, message_id: str, user_id: str) -> Message:
        """Remove the user's reaction and notify both participants."""
        ...

    async def delete_message(
        self, message_id: str, actor_id: str, for_everyone: bool
    ) -> Message:
        """Soft-delete for everyone or for the actor only."""
        ...


class MessagingEngine:
    """Messaging engine over the directory, message store and fanout."""

    def __init__(
        self,
        identity: IIdentityStore,
        directory: IChatDirectory,
        messages: IMessageStore,
        fanout: IFanout,
        registry: IPresenceRegistry,
        delivery: DeliveryScheduler,
        tracker: ITracker,
    ):
        self._identity = identity
        self._directory = directory
        self._messages = messages
        self._fanout = fanout
        self._registry = registry
        self._delivery = delivery
        self._tracker = tracker

    async def stop(self) -> None:
        """Cancel pending delivery upgrades."""
        await self._delivery.close()

    # Send / forward
    async def send(
        self,
        sender_id: str,
        recipient_id: str,
        payload: MessagePayload,
        forwarded_from: str | None = None,
    ) -> Message:
        """Create a message in the pair's chat and notify both sides."""
        if sender_id == recipient_id:
            raise ValidationError("Cannot send a message to yourself")
        await self._identity.resolve_user(sender_id)
        await self._identity.resolve_user(recipient_id)

        chat = await self._directory.get_or_create(sender_id, recipient_id)
        now = datetime.now(timezone.utc)
        message = Message(
            id=str(uuid.uuid4()),
            chat_id=chat.id,
            sender_id=sender_id,
            kind=payload.kind,
            created_at=now,
            text=payload.text,
            media=payload.media,
            status=MessageStatus.SENT,
            forwarded_from=forwarded_from,
            updated_at=now,
        )
        await self._messages.create(message)
        await self._directory.record_message(chat, message.id, now)

        data = message.to_dict()
        self._fanout.publish(recipient_id, Event.NEW_MESSAGE, data)
        self._fanout.publish(sender_id, Event.MESSAGE_SENT, data)

        if self._registry.is_online(recipient_id):
            self._delivery.schedule(
                recipient_id,
                partial(self._upgrade_to_delivered, message.id, recipient_id),
            )

        logger.info(
            "Message sent to %s",
            recipient_id,
            extra={"user_id": sender_id, "chat_id": chat.id, "message_id": message.id},
        )
        await self._tracker.track(
            event_type="message_sent",
            actor=sender_id,
            data={
                "message_id": message.id,
                "chat_id": chat.id,
                "recipient_id": recipient_id,
                "kind": message.kind.value,
                "forwarded_from": forwarded_from,
            },
        )
        return message

    async def forward(
        self, sender_id: str, original_message_id: str, recipient_ids: Iterable[str]
    ) -> list[Message]:
        """Send a copy of a message to each recipient; skip failing ones."""
        original = await self._messages.get(original_message_id)
        chat = await self._directory.get(original.chat_id)
        if (
            original.is_deleted
            or not chat.includes(sender_id)
            or sender_id in original.deleted_for
        ):
            raise NotFoundError(f"Message {original_message_id} not found")

        payload = original.to_payload()
        forwarded: list[Message] = []
        for recipient_id in dict.fromkeys(recipient_ids):
            try:
                message = await self.send(
                    sender_id, recipient_id, payload, forwarded_from=original.id
                )
            except (NotFoundError, ValidationError) as e:
                logger.warning(
                    "Skipping forward to %s: %s",
                    recipient_id,
                    e,
                    extra={"user_id": sender_id, "message_id": original.id},
                )
                continue
            forwarded.append(message)

        await self._tracker.track(
            event_type="message_forwarded",
            actor=sender_id,
            data={
                "original_id": original.id,
                "message_ids": [m.id for m in forwarded],
            },
        )
        return forwarded

    async def _upgrade_to_delivered(self, message_id: str, recipient_id: str) -> None:
        if not self._registry.is_online(recipient_id):
            return
        message, advanced = await self._messages.set_status(
            message_id, MessageStatus.DELIVERED, recipient_id
        )
        if advanced:
            self._notify_status(message)

    # Read state
    async def get_history(self, current_user_id: str, other_user_id: str) -> list[Message]:
        """Messages of the pair's chat as seen by the current user; marks them read."""
        await self._identity.resolve_user(other_user_id)
        chat = await self._directory.find(current_user_id, other_user_id)
        if chat is None:
            return []

        senders = await self._messages.mark_read(chat.id, current_user_id)
        await self._directory.recount_unread(chat.id, current_user_id)
        history = [
            message
            for message in await self._messages.history(chat.id)
            if message.visible_to(current_user_id)
        ]

        for sender_id in senders:
            self._fanout.publish(
                sender_id,
                Event.MESSAGES_READ,
                {"chatId": chat.id, "readerId": current_user_id},
            )

        if senders:
            await self._tracker.track(
                event_type="messages_read",
                actor=current_user_id,
                data={"chat_id": chat.id, "notified": senders},
            )
        return history

    async def update_status(
        self, message_id: str, status: MessageStatus | str, actor_id: str
    ) -> Message:
        """Recipient-reported status change (forward only)."""
        if not isinstance(status, MessageStatus):
            try:
                status = MessageStatus(status)
            except ValueError:
                raise ValidationError("Invalid status")

        message = await self._messages.get(message_id)
        await self._directory.get_for_participant(message.chat_id, actor_id)

        message, advanced = await self._messages.set_status(message_id, status, actor_id)
        if advanced:
            self._notify_status(message)
            await self._tracker.track(
                event_type="status_updated",
                actor=actor_id,
                data={"message_id": message_id, "status": message.status.value},
            )
        return message

    async def mark_message_read(self, reader_id: str, message_id: str) -> Message:
        """Handle a realtime ``messageRead`` command."""
        return await self.update_status(message_id, MessageStatus.READ, reader_id)

    def _notify_status(self, message: Message) -> None:
        self._fanout.publish(
            message.sender_id,
            Event.MESSAGE_STATUS_UPDATE,
            {"messageId": message.id, "status": message.status.value},
        )

    # Reactions
    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> Message:
        """Set the user's reaction and notify both participants."""
        emoji = (emoji or "").strip()
        chat = await self._chat_of_message(message_id, user_id)
        message = await self._messages.add_reaction(message_id, user_id, emoji)

        self._fanout.publish_many(
            chat.participants,
            Event.MESSAGE_REACTION,
            {"messageId": message_id, "userId": user_id, "emoji": emoji},
        )
        await self._tracker.track(
            event_type="reaction_added",
            actor=user_id,
            data={"message_id": message_id, "emoji": emoji},
        )
        return message

    async def remove_reaction(self, message_id: str, user_id: str) -> Message:
        """Remove the user's reaction and notify both participants."""
        chat = await self._chat_of_message(message_id, user_id)
        message = await self._messages.remove_reaction(message_id, user_id)

        self._fanout.publish_many(
            chat.participants,
            Event.MESSAGE_REACTION_REMOVED,
            {"messageId": message_id, "userId": user_id},
        )
        await self._tracker.track(
            event_type="reaction_removed",
            actor=user_id,
            data={"message_id": message_id},
        )
        return message

    # Deletion
    async def delete_message(
        self, message_id: str, actor_id: str, for_everyone: bool
    ) -> Message:
        """Soft-delete for everyone or for the actor only."""
        chat = await self._chat_of_message(message_id, actor_id)
        message = await self._messages.delete(message_id, actor_id, for_everyone)

        data = {"messageId": message_id, "deleteForEveryone": for_everyone}
        if for_everyone:
            self._fanout.publish_many(chat.participants, Event.MESSAGE_DELETED, data)
        else:
            # Only the actor's view changed.
            self._fanout.publish(actor_id, Event.MESSAGE_DELETED, data)

        await self._tracker.track(
            event_type="message_deleted",
            actor=actor_id,
            data={"message_id": message_id, "for_everyone": for_everyone},
        )
        return message

    async def _chat_of_message(self, message_id: str, user_id: str) -> Chat:
        message = await self._messages.get(message_id)
        return await self._directory.get_for_participant(message.chat_id, user_id)

    # Chats
    async def start_chat(self, user_id: str, other_user_id: str) -> ChatSummary:
        """Open (or reopen) the chat with another user."""
        if user_id == other_user_id:
            raise ValidationError("Cannot chat with yourself")
        await self._identity.resolve_user(other_user_id)
        chat = await self._directory.get_or_create(user_id, other_user_id)
        saved_names = await self._saved_names(user_id)
        return await self._summarize(user_id, chat, saved_names)

    async def list_chats(self, user_id: str, archived: bool = False) -> list[ChatSummary]:
        """The user's chat list with unread counts and display names."""
        if archived:
            chats = await self._directory.list_archived(user_id)
        else:
            chats = await self._directory.list_for(user_id)
        saved_names = await self._saved_names(user_id)
        return [await self._summarize(user_id, chat, saved_names) for chat in chats]

    async def toggle_archive(self, chat_id: str, user_id: str) -> bool:
        archived = await self._directory.toggle_archive(chat_id, user_id)
        logger.info(
            "Chat %s", "archived" if archived else "unarchived",
            extra={"user_id": user_id, "chat_id": chat_id},
        )
        return archived

    async def hide_chat(self, chat_id: str, user_id: str) -> None:
        await self._directory.hide(chat_id, user_id)

    async def clear_chat(self, chat_id: str, user_id: str) -> int:
        """Delete every message of the chat for the user only."""
        await self._directory.get_for_participant(chat_id, user_id)
        return await self._messages.clear_for(chat_id, user_id)

    async def search_user_by_phone(
        self, current_user_id: str, phone_number: str
    ) -> tuple[User, str | None]:
        """Find a user to chat with. Returns the user and the existing chat id."""
        if not phone_number or not phone_number.strip():
            raise ValidationError("Phone number is required")
        user = await self._identity.find_by_phone(phone_number)
        if user is None:
            raise NotFoundError("User not found")
        if user.id == current_user_id:
            raise ValidationError("Cannot chat with yourself")

        chat = await self._directory.find(current_user_id, user.id)
        return await self._visible_user(user, current_user_id), chat.id if chat else None

    # Contacts
    async def save_contact_name(
        self, owner_id: str, contact_user_id: str, saved_name: str
    ) -> Contact:
        saved_name = (saved_name or "").strip()
        if not saved_name:
            raise ValidationError("Contact name is required")
        if len(saved_name) > MAX_CONTACT_NAME_LENGTH:
            raise ValidationError(
                f"Contact name must be {MAX_CONTACT_NAME_LENGTH} characters or less"
            )
        await self._identity.resolve_user(contact_user_id)
        return await self._identity.save_contact(owner_id, contact_user_id, saved_name)

    async def delete_contact_name(self, owner_id: str, contact_user_id: str) -> None:
        if not await self._identity.delete_contact(owner_id, contact_user_id):
            raise NotFoundError("Contact name not found")

    async def _saved_names(self, owner_id: str) -> dict[str, str]:
        return {
            contact.contact_user_id: contact.saved_name
            for contact in await self._identity.contacts(owner_id)
        }

    async def _visible_user(self, user: User, viewer_id: str) -> User:
        viewer_is_contact = await self._identity.has_contact(user.id, viewer_id)
        return user.as_seen_by(viewer_is_contact)

    async def _summarize(
        self, viewer_id: str, chat: Chat, saved_names: dict[str, str]
    ) -> ChatSummary:
        other_id = chat.other(viewer_id)
        other = await self._identity.get_user(other_id)
        if other is not None:
            other = await self._visible_user(other, viewer_id)

        last_message = None
        if chat.last_message_id:
            try:
                last_message = await self._messages.get(chat.last_message_id)
            except NotFoundError:
                logger.warning("Chat %s points at missing message %s", chat.id, chat.last_message_id)

        return ChatSummary(
            chat=chat,
            other_participant=other,
            saved_name=saved_names.get(other_id),
            unread_count=chat.unread_for(viewer_id),
            last_message=last_message,
        )
