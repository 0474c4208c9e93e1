"""Control API routes."""

import uuid
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...errors import MessengerError
from ...logging_config import get_logger
from ...models import LastSeenVisibility, User
from ..errors import http_error
from .chats import CamelModel

logger = get_logger(__name__)


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class SeedUserRequest(CamelModel):
    """A user record pushed by the identity service (or a developer)."""

    id: str | None = None
    phone_number: str
    name: str = ""
    last_seen_visibility: LastSeenVisibility = LastSeenVisibility.EVERYONE


# Global SIM instance (will be set by main app)
_sim_instance: Any = None


def set_sim_instance(sim: Any) -> None:
    """Set the global SIM instance."""
    global _sim_instance
    _sim_instance = sim


def get_sim_instance() -> Any:
    """Get the global SIM instance."""
    return _sim_instance


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Reset system data between test runs."""
        try:
            await app.reset()
            return {"status": "ok"}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/users", status_code=201)
    async def seed_users(requests: list[SeedUserRequest]) -> list[dict]:
        """Create or update users. Contacts of an updated user are notified."""
        users = []
        try:
            # Whole batch is checked before anything is written.
            seen_phones: set[str] = set()
            for request in requests:
                phone_number = request.phone_number.strip()
                if not phone_number:
                    raise HTTPException(status_code=400, detail="Phone number is required")
                owner = await app.storage.find_user_by_phone(phone_number)
                if phone_number in seen_phones or (
                    owner is not None and owner.id != request.id
                ):
                    raise HTTPException(
                        status_code=400, detail=f"Phone number {phone_number} is taken"
                    )
                seen_phones.add(phone_number)

            for request in requests:
                existing = None
                if request.id:
                    existing = await app.storage.get_user(request.id)
                user = User(
                    id=request.id or str(uuid.uuid4()),
                    phone_number=request.phone_number.strip(),
                    name=request.name,
                    is_online=existing.is_online if existing else False,
                    last_seen=existing.last_seen if existing else None,
                    last_seen_visibility=request.last_seen_visibility,
                )
                await app.storage.save_user(user)
                if existing is not None:
                    await app.presence.announce_profile_update(
                        user.id,
                        {"name": user.name, "phoneNumber": user.phone_number},
                    )
                users.append(user.to_dict())
        except MessengerError as e:
            raise http_error(e)

        logger.info("Seeded %d users", len(users))
        return users

    @router.post("/sim/start", response_model=StatusResponse)
    async def start_sim() -> dict:
        """Start SIM simulation."""
        if not _sim_instance:
            raise HTTPException(status_code=404, detail="SIM not configured")
        await _sim_instance.start()
        return {"status": "ok"}

    @router.post("/sim/stop", response_model=StatusResponse)
    async def stop_sim() -> dict:
        """Stop SIM simulation."""
        if not _sim_instance:
            raise HTTPException(status_code=404, detail="SIM not configured")
        await _sim_instance.stop()
        return {"status": "ok"}

    return router
