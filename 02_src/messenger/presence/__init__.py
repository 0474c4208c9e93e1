"""Presence module."""

from .registry import IPresenceRegistry, PresenceRegistry, Session
from .service import IPresenceService, PresenceService

__all__ = [
    "IPresenceRegistry",
    "PresenceRegistry",
    "Session",
    "IPresenceService",
    "PresenceService",
]
