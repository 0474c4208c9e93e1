"""Messaging engine module."""

from .delivery import DeliveryScheduler
from .engine import IMessagingEngine, MessagingEngine

__all__ = ["DeliveryScheduler", "IMessagingEngine", "MessagingEngine"]
