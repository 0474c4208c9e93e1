"""Chat directory module."""

from .directory import ChatDirectory, IChatDirectory

__all__ = ["ChatDirectory", "IChatDirectory"]
