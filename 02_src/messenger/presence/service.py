"""Presence service: online/offline transitions and their broadcast."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Protocol

from ..directory import IChatDirectory
from ..engine.delivery import DeliveryScheduler
from ..fanout import IConnection, IFanout
from ..identity import IIdentityStore
from ..logging_config import get_logger
from ..message_store import IMessageStore
from ..models import Event, MessageStatus
from ..tracker import ITracker
from .registry import IPresenceRegistry, Session

logger = get_logger(__name__)


class IPresenceService(Protocol):
    """Connection lifecycle and transient realtime signals."""

    async def connect(self, user_id: str, connection: IConnection) -> Session:
        """Register a connection; announce the user if they just came online."""
        ...

    async def disconnect(self, session: Session) -> bool:
        """Drop a session; announce the user if they went offline."""
        ...

    def typing(self, sender_id: str, recipient_id: str, is_typing: bool = True) -> None:
        """Relay a typing indicator."""
        ...

    async def announce_profile_update(self, user_id: str, profile: dict) -> None:
        """Tell the user's contacts about a profile change."""
        ...


class PresenceService:
    """Drives the presence registry and broadcasts status changes to contacts.

    Transitions for one user are serialized so that a reconnect racing a
    stale disconnect cannot leave the stored flag out of step with the
    registry.
    """

    def __init__(
        self,
        registry: IPresenceRegistry,
        identity: IIdentityStore,
        directory: IChatDirectory,
        messages: IMessageStore,
        fanout: IFanout,
        delivery: DeliveryScheduler,
        tracker: ITracker,
    ):
        self._registry = registry
        self._identity = identity
        self._directory = directory
        self._messages = messages
        self._fanout = fanout
        self._delivery = delivery
        self._tracker = tracker
        # user id -> [lock, holders and waiters]; dropped when nobody needs it
        self._user_locks: dict[str, list] = {}

    @asynccontextmanager
    async def _serialized(self, user_id: str):
        entry = self._user_locks.setdefault(user_id, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._user_locks[user_id]

    async def connect(self, user_id: str, connection: IConnection) -> Session:
        user = await self._identity.resolve_user(user_id)

        async with self._serialized(user_id):
            session, came_online = await self._registry.register(user_id, connection)
            try:
                now = datetime.now(timezone.utc)
                await self._identity.set_presence(user_id, True, now)
                if not came_online:
                    return session

                contacts = await self._directory.contacts_of(user_id)
                self._fanout.publish_many(
                    contacts,
                    Event.USER_STATUS_CHANGE,
                    {"userId": user_id, "isOnline": True},
                )

                # Anything sent while the user was away has now reached a device.
                delivered = await self._messages.mark_delivered_to(user_id)
            except BaseException:
                # The session never reaches the caller; undo the registration.
                _, went_offline = await self._registry.unregister(session)
                if went_offline:
                    self._delivery.cancel_for(user_id)
                logger.warning(
                    "Connect failed, session %s rolled back", session.id,
                    extra={"user_id": user_id, "session_id": session.id},
                )
                raise

            for message_id, sender_id in delivered:
                self._fanout.publish(
                    sender_id,
                    Event.MESSAGE_STATUS_UPDATE,
                    {"messageId": message_id, "status": MessageStatus.DELIVERED.value},
                )

        logger.info(
            "User %s online", user.phone_number,
            extra={"user_id": user_id, "session_id": session.id},
        )
        await self._tracker.track(
            event_type="user_online",
            actor=user_id,
            data={"contacts": len(contacts), "delivered": len(delivered)},
        )
        return session

    async def disconnect(self, session: Session) -> bool:
        """Drop a session; announce the user if they went offline.

        Returns False for a session that is no longer registered.
        """
        user_id = session.user_id
        async with self._serialized(user_id):
            removed, went_offline = await self._registry.unregister(session)
            if not removed:
                logger.debug("Ignoring stale disconnect of session %s", session.id)
                return False
            if not went_offline:
                return True

            self._delivery.cancel_for(user_id)
            now = datetime.now(timezone.utc)
            await self._identity.set_presence(user_id, False, now)

            user = await self._identity.resolve_user(user_id)
            contacts = await self._directory.contacts_of(user_id)
            for contact_id in contacts:
                viewer_is_contact = await self._identity.has_contact(user_id, contact_id)
                last_seen = user.visible_last_seen(viewer_is_contact)
                self._fanout.publish(
                    contact_id,
                    Event.USER_STATUS_CHANGE,
                    {
                        "userId": user_id,
                        "isOnline": False,
                        "lastSeen": last_seen.isoformat() if last_seen else None,
                    },
                )

        logger.info(
            "User offline", extra={"user_id": user_id, "session_id": session.id}
        )
        await self._tracker.track(
            event_type="user_offline",
            actor=user_id,
            data={"contacts": len(contacts)},
        )
        return True

    def typing(self, sender_id: str, recipient_id: str, is_typing: bool = True) -> None:
        # Transient; sent whether or not a chat exists.
        self._fanout.publish(
            recipient_id,
            Event.TYPING,
            {"senderId": sender_id, "isTyping": is_typing},
        )

    def stop_typing(self, sender_id: str, recipient_id: str) -> None:
        self.typing(sender_id, recipient_id, is_typing=False)

    async def announce_profile_update(self, user_id: str, profile: dict) -> None:
        contacts = await self._directory.contacts_of(user_id)
        self._fanout.publish_many(
            contacts, Event.PROFILE_UPDATED, {"userId": user_id, **profile}
        )
