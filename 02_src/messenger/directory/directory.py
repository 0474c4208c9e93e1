"""Chat directory: one chat per unordered pair of users."""

from datetime import datetime
from typing import Protocol

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models import Chat
from ..storage import IStorage


class IChatDirectory(Protocol):
    """Maps user pairs to chats and lists a user's chats."""

    async def get_or_create(self, user_a: str, user_b: str) -> Chat:
        """Get the pair's chat, creating it lazily."""
        ...

    async def find(self, user_a: str, user_b: str) -> Chat | None:
        """Get the pair's chat if it exists."""
        ...

    async def get(self, chat_id: str) -> Chat:
        """Get a chat by ID. Raises NotFoundError."""
        ...

    async def get_for_participant(self, chat_id: str, user_id: str) -> Chat:
        """Get a chat the user takes part in. Raises AuthorizationError otherwise."""
        ...

    async def list_for(self, user_id: str) -> list[Chat]:
        """Chats not hidden or archived by the user, most recent first."""
        ...

    async def list_archived(self, user_id: str) -> list[Chat]:
        """Chats archived by the user, most recent first."""
        ...

    async def contacts_of(self, user_id: str) -> set[str]:
        """Every other participant across the user's chats."""
        ...

    async def toggle_archive(self, chat_id: str, user_id: str) -> bool:
        """Flip the user's archived flag and return the new state."""
        ...

    async def hide(self, chat_id: str, user_id: str) -> None:
        """Remove the chat from the user's list until the next message."""
        ...

    async def record_message(self, chat: Chat, message_id: str, at: datetime) -> None:
        """Update last message and hidden flags for a new message."""
        ...

    async def recount_unread(self, chat_id: str, user_id: str) -> int:
        """Reset the user's unread counter to what is still unread after a read."""
        ...


class ChatDirectory:
    """Chat directory over Storage."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def get_or_create(self, user_a: str, user_b: str) -> Chat:
        if user_a == user_b:
            raise ValidationError("Cannot chat with yourself")
        return await self._storage.get_or_create_chat(user_a, user_b)

    async def find(self, user_a: str, user_b: str) -> Chat | None:
        if user_a == user_b:
            return None
        return await self._storage.find_chat(user_a, user_b)

    async def get(self, chat_id: str) -> Chat:
        chat = await self._storage.get_chat(chat_id)
        if chat is None:
            raise NotFoundError(f"Chat {chat_id} not found")
        return chat

    async def get_for_participant(self, chat_id: str, user_id: str) -> Chat:
        """Get a chat the user takes part in."""
        chat = await self.get(chat_id)
        if not chat.includes(user_id):
            raise AuthorizationError("Not a participant of this chat")
        return chat

    async def list_for(self, user_id: str) -> list[Chat]:
        return await self._storage.list_chats(user_id)

    async def list_archived(self, user_id: str) -> list[Chat]:
        return await self._storage.list_chats(user_id, archived=True)

    async def contacts_of(self, user_id: str) -> set[str]:
        # Recomputed on every call; presence must not act on a stale set.
        return await self._storage.chat_partners(user_id)

    async def toggle_archive(self, chat_id: str, user_id: str) -> bool:
        await self.get_for_participant(chat_id, user_id)
        archived = await self._storage.toggle_archived(chat_id, user_id)
        if archived is None:
            raise AuthorizationError("Not a participant of this chat")
        return archived

    async def hide(self, chat_id: str, user_id: str) -> None:
        await self.get_for_participant(chat_id, user_id)
        await self._storage.set_hidden(chat_id, [user_id], hidden=True)

    async def record_message(self, chat: Chat, message_id: str, at: datetime) -> None:
        """Bookkeeping for a new message: last pointer, un-hide.

        The recipient's unread counter is bumped by the message insert itself.
        """
        await self._storage.record_chat_activity(chat.id, message_id, at)
        # A new message brings the chat back for both sides.
        await self._storage.set_hidden(chat.id, chat.participants, hidden=False)

    async def recount_unread(self, chat_id: str, user_id: str) -> int:
        return await self._storage.recount_unread(chat_id, user_id)
