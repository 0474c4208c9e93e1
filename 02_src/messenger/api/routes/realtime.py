"""WebSocket transport for realtime events and commands.

Frames in both directions are ``{"event": <name>, "data": {...}}``. A
connection must send ``join`` before any other command except ``ping``.
"""

from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import Application
from ...errors import MessengerError
from ...logging_config import get_logger
from ...models import Command
from ...presence import Session

logger = get_logger(__name__)


async def _send_frame(websocket: WebSocket, event: str, data: dict[str, Any]) -> None:
    await websocket.send_json({"event": event, "data": data})


def create_realtime_router(app: Application) -> APIRouter:
    """Create realtime router."""
    router = APIRouter(tags=["realtime"])

    async def handle_command(
        websocket: WebSocket, session: Session | None, command: Command, data: dict
    ) -> Session | None:
        if command == Command.PING:
            await _send_frame(websocket, "pong", {})
            return session

        if command == Command.JOIN:
            if session is not None:
                await _send_frame(websocket, "error", {"message": "Already joined"})
                return session
            user_id = data.get("userId")
            if not isinstance(user_id, str) or not user_id:
                await _send_frame(websocket, "error", {"message": "userId is required"})
                return None
            session = await app.presence.connect(user_id, websocket)
            await _send_frame(websocket, "joined", {"userId": user_id, "sessionId": session.id})
            return session

        if session is None:
            await _send_frame(websocket, "error", {"message": "Join first"})
            return None

        user_id = session.user_id
        if command == Command.TYPING:
            app.presence.typing(
                user_id, data.get("recipientId", ""), bool(data.get("isTyping", True))
            )
        elif command == Command.STOP_TYPING:
            app.presence.stop_typing(user_id, data.get("recipientId", ""))
        elif command == Command.MESSAGE_READ:
            await app.engine.mark_message_read(user_id, data.get("messageId", ""))
        return session

    @router.websocket("/ws")
    async def realtime(websocket: WebSocket) -> None:
        """Long-lived connection carrying one user's realtime channel."""
        await websocket.accept()
        session: Session | None = None
        try:
            while True:
                try:
                    frame = await websocket.receive_json()
                except WebSocketDisconnect:
                    break
                except ValueError:
                    await _send_frame(websocket, "error", {"message": "Invalid JSON"})
                    continue

                if not isinstance(frame, dict):
                    await _send_frame(websocket, "error", {"message": "Invalid frame"})
                    continue
                try:
                    command = Command(frame.get("event"))
                except ValueError:
                    await _send_frame(websocket, "error", {"message": "Unknown command"})
                    continue

                data = frame.get("data")
                if not isinstance(data, dict):
                    data = {}
                try:
                    session = await handle_command(websocket, session, command, data)
                except MessengerError as e:
                    await _send_frame(
                        websocket, "error", {"command": command.value, "message": str(e)}
                    )
        finally:
            if session is not None:
                await app.presence.disconnect(session)
                logger.info("Realtime connection closed for %s", session.user_id)

    return router
