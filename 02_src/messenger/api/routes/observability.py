"""Observability API routes: activity trail and live presence."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict

from ...app import Application
from ...errors import MessengerError
from ..errors import http_error


class TraceEventResponse(BaseModel):
    """One entry of the activity trail."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class PresenceResponse(BaseModel):
    """Users with at least one live realtime session."""

    online: list[str]
    sessions: dict[str, int]


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: datetime | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="e.g. message_sent, user_online"),
        actor: str | None = Query(None, description="User id or 'sim'"),
    ) -> list[TraceEventResponse]:
        """Newest first."""
        try:
            events = await app.storage.get_trace_events(
                after=after,
                event_types=[event_type] if event_type else None,
                actor=actor,
                limit=limit,
            )
        except MessengerError as e:
            raise http_error(e)
        return [TraceEventResponse.model_validate(event) for event in events]

    @router.get("/presence", response_model=PresenceResponse)
    async def get_presence() -> PresenceResponse:
        registry = app.registry
        online = sorted(registry.online_users())
        return PresenceResponse(
            online=online,
            sessions={user_id: len(registry.connections(user_id)) for user_id in online},
        )

    return router
