"""Message store and the delivery-status state machine."""

from typing import Protocol

from ..config import MAX_EMOJI_LENGTH
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import DELETED_PLACEHOLDER, Message, MessageStatus
from ..storage import IStorage

logger = get_logger(__name__)


class IMessageStore(Protocol):
    """Append-only message log with mutable status, reactions and deletions."""

    async def create(self, message: Message) -> Message:
        """Validate the text/media invariant and persist."""
        ...

    async def get(self, message_id: str) -> Message:
        """Get a message. Raises NotFoundError."""
        ...

    async def history(self, chat_id: str) -> list[Message]:
        """All messages of a chat, oldest first."""
        ...

    async def mark_read(self, chat_id: str, reader_id: str) -> list[str]:
        """Advance every unread incoming message to read; return distinct senders."""
        ...

    async def set_status(
        self, message_id: str, new_status: MessageStatus, actor_id: str
    ) -> tuple[Message, bool]:
        """Forward-only status change reported by the recipient."""
        ...

    async def mark_delivered_to(self, recipient_id: str) -> list[tuple[str, str]]:
        """Advance sent messages addressed to a user to delivered."""
        ...

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> Message:
        """Replace the user's reaction on a message."""
        ...

    async def remove_reaction(self, message_id: str, user_id: str) -> Message:
        """Remove the user's reaction (idempotent)."""
        ...

    async def delete(self, message_id: str, actor_id: str, for_everyone: bool) -> Message:
        """Soft-delete for everyone (sender only) or for the actor."""
        ...

    async def clear_for(self, chat_id: str, user_id: str) -> int:
        """Hide every message of a chat for one user."""
        ...


class MessageStore:
    """Message store over Storage."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def create(self, message: Message) -> Message:
        message.validate()
        await self._storage.save_message(message)
        return message

    async def get(self, message_id: str) -> Message:
        message = await self._storage.get_message(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")
        return message

    async def history(self, chat_id: str) -> list[Message]:
        return await self._storage.get_messages(chat_id)

    async def mark_read(self, chat_id: str, reader_id: str) -> list[str]:
        return await self._storage.mark_read(chat_id, reader_id)

    async def set_status(
        self, message_id: str, new_status: MessageStatus, actor_id: str
    ) -> tuple[Message, bool]:
        """Forward-only status change reported by the recipient.

        A status that is not strictly after the current one is a no-op, so
        racing delivered/read reports settle on the furthest state.
        """
        message = await self.get(message_id)
        if message.sender_id == actor_id:
            raise AuthorizationError("Cannot update own message status")

        advanced = await self._storage.advance_status(message_id, new_status)
        if advanced:
            message = await self.get(message_id)
        return message, advanced

    async def mark_delivered_to(self, recipient_id: str) -> list[tuple[str, str]]:
        return await self._storage.mark_delivered_to(recipient_id)

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> Message:
        emoji = (emoji or "").strip()
        if not emoji or len(emoji) > MAX_EMOJI_LENGTH:
            raise ValidationError("Invalid emoji")

        await self.get(message_id)
        await self._storage.set_reaction(message_id, user_id, emoji)
        return await self.get(message_id)

    async def remove_reaction(self, message_id: str, user_id: str) -> Message:
        await self.get(message_id)
        await self._storage.delete_reaction(message_id, user_id)
        return await self.get(message_id)

    async def delete(self, message_id: str, actor_id: str, for_everyone: bool) -> Message:
        message = await self.get(message_id)

        if for_everyone:
            if message.sender_id != actor_id:
                raise AuthorizationError("Only sender can delete for everyone")
            if not await self._storage.scrub_message(message_id, DELETED_PLACEHOLDER):
                logger.debug("Message %s already deleted for everyone", message_id)
        else:
            await self._storage.add_deleted_for(message_id, actor_id)

        return await self.get(message_id)

    async def clear_for(self, chat_id: str, user_id: str) -> int:
        return await self._storage.clear_chat_for(chat_id, user_id)
