"""Identity store backed by the users table."""

from datetime import datetime
from typing import Protocol

from ..errors import NotFoundError
from ..models import Contact, User
from ..storage import IStorage


class IIdentityStore(Protocol):
    """Resolves user identifiers. Never creates or authenticates users."""

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID, or None."""
        ...

    async def resolve_user(self, user_id: str) -> User:
        """Get a user by ID. Raises NotFoundError."""
        ...

    async def find_by_phone(self, phone_number: str) -> User | None:
        """Get a user by phone number, or None."""
        ...

    async def set_presence(self, user_id: str, is_online: bool, last_seen: datetime) -> None:
        """Record a presence transition."""
        ...

    async def contacts(self, owner_id: str) -> list[Contact]:
        """Contacts saved by a user."""
        ...

    async def has_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Whether owner saved contact_user_id."""
        ...

    async def save_contact(self, owner_id: str, contact_user_id: str, saved_name: str) -> Contact:
        """Save or rename a contact."""
        ...

    async def delete_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Delete a contact. False if none existed."""
        ...


class IdentityStore:
    """Identity lookups over Storage."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def get_user(self, user_id: str) -> User | None:
        return await self._storage.get_user(user_id)

    async def resolve_user(self, user_id: str) -> User:
        """Get a user by ID. Raises NotFoundError."""
        user = await self._storage.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def find_by_phone(self, phone_number: str) -> User | None:
        return await self._storage.find_user_by_phone(phone_number.strip())

    async def set_presence(self, user_id: str, is_online: bool, last_seen: datetime) -> None:
        await self._storage.set_presence(user_id, is_online, last_seen)

    async def contacts(self, owner_id: str) -> list[Contact]:
        return await self._storage.get_contacts(owner_id)

    async def has_contact(self, owner_id: str, contact_user_id: str) -> bool:
        return await self._storage.has_contact(owner_id, contact_user_id)

    async def save_contact(self, owner_id: str, contact_user_id: str, saved_name: str) -> Contact:
        return await self._storage.upsert_contact(owner_id, contact_user_id, saved_name)

    async def delete_contact(self, owner_id: str, contact_user_id: str) -> bool:
        return await self._storage.delete_contact(owner_id, contact_user_id)
