"""
Room status WebSocket.

Clients connect to ``/api/v1/ws/rooms?token=<accessToken>`` and exchange
JSON frames of the form ``{"event": <name>, "data": <payload>}``. Every
connection joins the ``all`` topic, can add floor topics, and receives a
periodic status snapshot until it disconnects.
"""

import json
import logging
from functools import partial
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.database import get_session_factory
from app.dependencies import authenticate_token, ensure_admin, get_socket_room_hub, websocket_token
from app.models.user import User
from app.schemas.room import BulkStatusItem
from app.services.broadcast import RoomBroadcastHub, floor_topic
from app.services.room_service import room_service, load_status_snapshot, ROOM_STATUS_UPDATE
from app.services.status_pusher import PeriodicStatusPusher
from app.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)

router = APIRouter()

_bulk_items = TypeAdapter(list[Any])


def _authenticate(session_factory: sessionmaker, token: str | None) -> User:
    with session_factory() as db:
        return authenticate_token(db, token)


def _parse_floor(value: Any) -> int:
    if isinstance(value, dict):
        value = value.get("floor")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise AppException(status.HTTP_400_BAD_REQUEST, "Floor must be a number", ErrorCode.VALIDATION_ERROR)


class RoomSocketSession:
    """Command dispatcher bound to one authenticated connection."""

    def __init__(
        self, websocket: WebSocket, user: User, hub: RoomBroadcastHub, session_factory: sessionmaker,
    ) -> None:
        self.websocket = websocket
        self.user = user
        self.hub = hub
        self.session_factory = session_factory
        self.handlers = {
            "getRoomStatus":        self.get_room_status,
            "updateRoomStatus":     self.update_room_status,
            "bulkUpdateRoomStatus": self.bulk_update_room_status,
            "joinFloor":            self.join_floor,
            "leaveFloor":           self.leave_floor,
        }

    async def reply(self, event: str, data: Any) -> None:
        await self.hub.send(self.websocket, event, data)

    async def error(self, message: str, code: str = ErrorCode.INTERNAL_SERVER_ERROR) -> None:
        await self.reply("error", {"message": message, "code": code})

    def _in_session(self, fn, *args):
        with self.session_factory() as db:
            return fn(db, *args)

    async def dispatch(self, frame: Any) -> None:
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            await self.error("Frames must look like {\"event\": ..., \"data\": ...}", ErrorCode.VALIDATION_ERROR)
            return

        event = frame["event"]
        handler = self.handlers.get(event)
        if handler is None:
            await self.error(f"Unknown event '{event}'", ErrorCode.VALIDATION_ERROR)
            return

        try:
            await handler(frame.get("data"))
        except AppException as e:
            await self.error(e.message, e.error_code)
        except ValidationError as e:
            await self.error(f"Invalid payload for '{event}': {e.error_count()} error(s)",
                             ErrorCode.VALIDATION_ERROR)
        except Exception:
            logger.exception(f"Error handling '{event}' for {self.user.username}")
            await self.error(f"Error handling {event}")

    # ─── Commands ─────────────────────────────────────────────────────────────
    async def get_room_status(self, data: Any) -> None:
        room_number = data.get("roomNumber") if isinstance(data, dict) else data
        snapshot = await run_in_threadpool(self._in_session, room_service.get_status, str(room_number))
        await self.reply("roomStatus", snapshot)

    async def update_room_status(self, data: Any) -> None:
        ensure_admin(self.user)
        item = BulkStatusItem.model_validate(data)
        ack, event = await run_in_threadpool(
            self._in_session, room_service.update_status, item.roomNumber, item, self.user,
        )
        await self.hub.publish(ROOM_STATUS_UPDATE, event, event["floor"])
        await self.reply("updateConfirmed", {"roomNumber": ack["roomNumber"], "status": ack["currentStatus"]})

    async def bulk_update_room_status(self, data: Any) -> None:
        ensure_admin(self.user)
        items = _bulk_items.validate_python(data)
        result = await run_in_threadpool(
            self._in_session, room_service.bulk_update_status, items, self.user,
        )
        await self.hub.publish_many(result.events)
        await self.reply("bulkUpdateCompleted", {"results": result.succeeded, "errors": result.failed})

    async def join_floor(self, data: Any) -> None:
        floor = _parse_floor(data)
        self.hub.join(self.websocket, floor_topic(floor))
        await self.reply("floorJoined", {"floor": floor})

    async def leave_floor(self, data: Any) -> None:
        floor = _parse_floor(data)
        self.hub.leave(self.websocket, floor_topic(floor))
        await self.reply("floorLeft", {"floor": floor})


@router.websocket("/ws/rooms")
async def room_socket(
    websocket: WebSocket,
    session_factory: sessionmaker     = Depends(get_session_factory),
    hub:             RoomBroadcastHub = Depends(get_socket_room_hub),
):
    try:
        user = await run_in_threadpool(_authenticate, session_factory, websocket_token(websocket))
    except AppException as e:
        logger.info(f"Rejected room socket: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()
    hub.connect(websocket)
    logger.info(f"User {user.username} connected to room system")

    session = RoomSocketSession(websocket, user, hub, session_factory)
    pusher = PeriodicStatusPusher(
        snapshot=partial(run_in_threadpool, load_status_snapshot, session_factory),
        send=session.reply,
        interval=settings.ROOM_STATUS_PUSH_INTERVAL_SECONDS,
    )

    try:
        await session.reply("userConnected", {
            "userId":   user.id,
            "username": user.username,
            "role":     user.role.value,
            "name":     user.full_name,
        })
        pusher.start()

        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await session.error("Frames must be JSON", ErrorCode.VALIDATION_ERROR)
                continue
            await session.dispatch(frame)
    except WebSocketDisconnect:
        pass
    finally:
        await pusher.stop()
        hub.disconnect(websocket)
        logger.info(f"User {user.username} disconnected from room system")
