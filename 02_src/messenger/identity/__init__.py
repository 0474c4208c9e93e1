"""Identity module."""

from .identity import IdentityStore, IIdentityStore

__all__ = ["IdentityStore", "IIdentityStore"]
