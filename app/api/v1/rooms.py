from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user, get_admin_user, get_room_hub
from app.models.user import User
from app.schemas.room import RoomCreateRequest, RoomUpdateRequest, RoomStatusRequest, BulkStatusRequest
from app.schemas.common import ErrorResponse, success_response
from app.services.broadcast import RoomBroadcastHub
from app.services.room_service import (
    room_service, user_ref, ROOM_CREATED, ROOM_DELETED, ROOM_STATUS_UPDATE,
)

router = APIRouter(
    prefix="/rooms",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


@router.get("", summary="List rooms with their live status")
def list_rooms(
    floor:    Optional[int] = Query(None, ge=0, le=10),
    building: Optional[str] = Query(None),
    type:     Optional[str] = Query(None),
    status:   Optional[str] = Query(None, description="free | occupied | reserved | maintenance"),
    db:       Session       = Depends(get_db),
    _:        User          = Depends(get_current_user),
):
    data = room_service.list_rooms(db, floor, building, type, status)
    return success_response("Rooms retrieved successfully", data)


@router.get("/stats", summary="Room statistics (Admin)")
def room_stats(db: Session = Depends(get_db), _: User = Depends(get_admin_user)):
    return success_response("Room statistics retrieved", room_service.stats(db))


@router.patch("/bulk-status", summary="Bulk status update (Admin)")
def bulk_update_status(
    body:  BulkStatusRequest,
    background: BackgroundTasks,
    db:    Session          = Depends(get_db),
    hub:   RoomBroadcastHub = Depends(get_room_hub),
    current_user: User      = Depends(get_admin_user),
):
    result = room_service.bulk_update_status(db, body.updates, current_user)
    background.add_task(hub.publish_many, list(result.events))
    return success_response(result.summary, result.to_response())


@router.get("/{room_number}", summary="Get room by number")
def get_room(room_number: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response("Room retrieved", room_service.get_room(db, room_number))


@router.get("/{room_number}/schedule", summary="Get a room's daily schedule")
def get_schedule(
    room_number: str,
    day:  Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    db:   Session        = Depends(get_db),
    _:    User           = Depends(get_current_user),
):
    return success_response("Room schedule retrieved", room_service.get_schedule(db, room_number, day))


@router.get("/{room_number}/status", summary="Get a room's current status")
def get_status(room_number: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response("Room status retrieved", room_service.get_status(db, room_number))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create room (Admin)")
def create_room(
    body: RoomCreateRequest,
    background: BackgroundTasks,
    db:   Session          = Depends(get_db),
    hub:  RoomBroadcastHub = Depends(get_room_hub),
    current_user: User     = Depends(get_admin_user),
):
    data = room_service.create_room(db, body, current_user)
    background.add_task(
        hub.publish, ROOM_CREATED,
        {"room": data, "createdBy": user_ref(current_user)}, data["floor"],
    )
    return success_response("Room created successfully", data)


@router.put("/{room_number}", summary="Update room (Admin)")
def update_room(
    room_number: str,
    body:    RoomUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = room_service.update_room(db, room_number, body, current_user)
    return success_response("Room updated successfully", data)


@router.patch("/{room_number}/status", summary="Change room status (Admin)")
def update_status(
    room_number: str,
    body:    RoomStatusRequest,
    background: BackgroundTasks,
    db:      Session          = Depends(get_db),
    hub:     RoomBroadcastHub = Depends(get_room_hub),
    current_user: User        = Depends(get_admin_user),
):
    ack, event = room_service.update_status(db, room_number, body, current_user)
    background.add_task(hub.publish, ROOM_STATUS_UPDATE, event, event["floor"])
    return success_response("Room status updated successfully", ack)


@router.delete("/{room_number}", summary="Delete room (Admin)")
def delete_room(
    room_number: str,
    background: BackgroundTasks,
    db:      Session          = Depends(get_db),
    hub:     RoomBroadcastHub = Depends(get_room_hub),
    current_user: User        = Depends(get_admin_user),
):
    deleted = room_service.delete_room(db, room_number, current_user)
    background.add_task(
        hub.publish, ROOM_DELETED,
        {"roomNumber": deleted["roomNumber"], "deletedBy": user_ref(current_user)}, deleted["floor"],
    )
    return success_response("Room deleted successfully", None)
