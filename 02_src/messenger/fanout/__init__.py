"""Fanout module."""

from .fanout import Fanout, IChannels, IConnection, IFanout

__all__ = ["Fanout", "IChannels", "IConnection", "IFanout"]
