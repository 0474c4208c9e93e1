"""User and contact data models."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class LastSeenVisibility(str, Enum):
    """Who may see a user's last-seen timestamp."""

    EVERYONE = "everyone"
    CONTACTS = "contacts"
    NOBODY = "nobody"


@dataclass
class User:
    """A user as resolved from the identity store."""

    id: str
    phone_number: str
    name: str = ""
    is_online: bool = False
    last_seen: datetime | None = None
    last_seen_visibility: LastSeenVisibility = LastSeenVisibility.EVERYONE

    def visible_last_seen(self, viewer_is_contact: bool) -> datetime | None:
        """Last seen as a viewer is allowed to see it.

        ``viewer_is_contact`` is True when this user has saved the viewer
        as a contact.
        """
        if self.last_seen_visibility == LastSeenVisibility.EVERYONE:
            return self.last_seen
        if self.last_seen_visibility == LastSeenVisibility.CONTACTS and viewer_is_contact:
            return self.last_seen
        return None

    def as_seen_by(self, viewer_is_contact: bool) -> "User":
        """Copy with last_seen withheld according to privacy."""
        return replace(self, last_seen=self.visible_last_seen(viewer_is_contact))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "phoneNumber": self.phone_number,
            "name": self.name,
            "isOnline": self.is_online,
            "lastSeen": self.last_seen.isoformat() if self.last_seen else None,
            "privacySettings": {
                "lastSeenVisibility": self.last_seen_visibility.value,
            },
        }


@dataclass
class Contact:
    """A display name a user saved for another user."""

    owner_id: str
    contact_user_id: str
    saved_name: str
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "userId": self.owner_id,
            "contactUserId": self.contact_user_id,
            "savedName": self.saved_name,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
