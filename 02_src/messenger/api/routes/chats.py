"""Chat API routes.

The caller is identified by the ``X-User-Id`` header, set by the auth
gateway in front of this service.
"""

from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...app import Application
from ...errors import MessengerError
from ...models import payload_from_dict
from ..errors import http_error


class CamelModel(BaseModel):
    """Request body accepting the client's camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendMessageRequest(CamelModel):
    """Request model for sending a message."""

    recipient_id: str
    text: str | None = None
    type: str = "text"
    media: dict[str, Any] | None = None


class ForwardRequest(CamelModel):
    message_id: str
    recipient_ids: list[str] = Field(min_length=1)


class StatusRequest(CamelModel):
    message_id: str
    status: str


class DeleteMessageRequest(CamelModel):
    message_id: str
    for_everyone: bool = Field(False, alias="deleteForEveryone")


class ReactionRequest(CamelModel):
    message_id: str
    emoji: str


class RemoveReactionRequest(CamelModel):
    message_id: str


class SaveContactRequest(CamelModel):
    contact_user_id: str
    saved_name: str


class ContactRequest(CamelModel):
    contact_user_id: str


class StartChatRequest(CamelModel):
    user_id: str


class SearchRequest(CamelModel):
    phone_number: str


class ChatRequest(CamelModel):
    chat_id: str


async def current_user(x_user_id: str | None = Header(None)) -> str:
    """Caller identity from the gateway header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def create_chats_router(app: Application) -> APIRouter:
    """Create chat router."""
    router = APIRouter(prefix="/api/chat", tags=["chat"])

    @router.post("/send", status_code=201)
    async def send_message(
        request: SendMessageRequest, user_id: str = Depends(current_user)
    ) -> dict:
        """Send a text, emoji or media message."""
        try:
            payload = payload_from_dict(
                {"type": request.type, "text": request.text, "media": request.media}
            )
            message = await app.engine.send(user_id, request.recipient_id, payload)
            return message.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.post("/forward", status_code=201)
    async def forward_message(
        request: ForwardRequest, user_id: str = Depends(current_user)
    ) -> dict:
        """Forward a message to several recipients; failing ones are skipped."""
        try:
            messages = await app.engine.forward(
                user_id, request.message_id, request.recipient_ids
            )
            return {
                "count": len(messages),
                "messages": [m.to_dict() for m in messages],
            }
        except MessengerError as e:
            raise http_error(e)

    @router.put("/status")
    async def update_status(
        request: StatusRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            message = await app.engine.update_status(
                request.message_id, request.status, user_id
            )
            return message.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.post("/message/delete")
    async def delete_message(
        request: DeleteMessageRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            message = await app.engine.delete_message(
                request.message_id, user_id, request.for_everyone
            )
            return {"messageId": message.id, "deleteForEveryone": request.for_everyone}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/reaction")
    async def add_reaction(
        request: ReactionRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            message = await app.engine.add_reaction(request.message_id, user_id, request.emoji)
            return message.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.delete("/reaction")
    async def remove_reaction(
        request: RemoveReactionRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            message = await app.engine.remove_reaction(request.message_id, user_id)
            return message.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.post("/contact/save")
    async def save_contact(
        request: SaveContactRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            contact = await app.engine.save_contact_name(
                user_id, request.contact_user_id, request.saved_name
            )
            return contact.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.post("/contact/delete")
    async def delete_contact(
        request: ContactRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            await app.engine.delete_contact_name(user_id, request.contact_user_id)
            return {"status": "ok"}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/start")
    async def start_chat(
        request: StartChatRequest, user_id: str = Depends(current_user)
    ) -> dict:
        """Open the chat with another user, creating it if needed."""
        try:
            summary = await app.engine.start_chat(user_id, request.user_id)
            return summary.to_dict()
        except MessengerError as e:
            raise http_error(e)

    @router.post("/search")
    async def search_user(
        request: SearchRequest, user_id: str = Depends(current_user)
    ) -> dict:
        """Look a user up by phone number."""
        try:
            user, chat_id = await app.engine.search_user_by_phone(
                user_id, request.phone_number
            )
            return {"user": user.to_dict(), "chatId": chat_id}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/archive")
    async def toggle_archive(
        request: ChatRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            archived = await app.engine.toggle_archive(request.chat_id, user_id)
            return {"chatId": request.chat_id, "archived": archived}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/delete")
    async def hide_chat(
        request: ChatRequest, user_id: str = Depends(current_user)
    ) -> dict:
        """Remove the chat from the caller's list until the next message."""
        try:
            await app.engine.hide_chat(request.chat_id, user_id)
            return {"status": "ok"}
        except MessengerError as e:
            raise http_error(e)

    @router.post("/clear")
    async def clear_chat(
        request: ChatRequest, user_id: str = Depends(current_user)
    ) -> dict:
        try:
            cleared = await app.engine.clear_chat(request.chat_id, user_id)
            return {"status": "ok", "cleared": cleared}
        except MessengerError as e:
            raise http_error(e)

    @router.get("/")
    async def list_chats(
        archived: bool = Query(False), user_id: str = Depends(current_user)
    ) -> list[dict]:
        """The caller's chat list, most recent first."""
        try:
            summaries = await app.engine.list_chats(user_id, archived=archived)
            return [s.to_dict() for s in summaries]
        except MessengerError as e:
            raise http_error(e)

    @router.get("/{other_user_id}")
    async def get_history(
        other_user_id: str, user_id: str = Depends(current_user)
    ) -> list[dict]:
        """Messages with another user; marks the incoming ones read."""
        try:
            messages = await app.engine.get_history(user_id, other_user_id)
            return [m.to_dict() for m in messages]
        except MessengerError as e:
            raise http_error(e)

    return router
