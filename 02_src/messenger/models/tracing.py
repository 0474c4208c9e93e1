"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single activity-trail entry."""

    id: str
    event_type: str  # e.g. "message_sent", "user_online"
    actor: str  # user id or component that caused it
    data: dict
    timestamp: datetime
