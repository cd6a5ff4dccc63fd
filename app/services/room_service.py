import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload, sessionmaker

from app.config import settings
from app.dependencies import ensure_admin
from app.models.room import Room, RoomStatus
from app.models.user import User
from app.schemas.room import RoomCreateRequest, RoomUpdateRequest, RoomStatusRequest
from app.services.room_status import apply_update, local_now, resolve_status
from app.utils.exceptions import AppException, DuplicateEntryException, NotFoundException

logger = logging.getLogger(__name__)

ROOM_STATUS_UPDATE = "roomStatusUpdate"
ROOM_CREATED       = "roomCreated"
ROOM_DELETED       = "roomDeleted"


# ─── Serialization ────────────────────────────────────────────────────────────
def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def user_ref(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.full_name, "username": user.username}


def _load_users(db: Session, ids: Iterable[int | None]) -> dict[int, User]:
    """Resolve weak user references; ids of deleted users simply stay unresolved."""
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    return {u.id: u for u in db.query(User).filter(User.id.in_(wanted)).all()}


def _serialize_slot(slot, users: dict[int, User]) -> dict:
    return {
        "startTime":  slot.startTime,
        "endTime":    slot.endTime,
        "status":     RoomStatus(slot.status).value,
        "reservedBy": user_ref(users.get(slot.reservedById)),
        "purpose":    slot.purpose or "",
    }


def _serialize(r: Room, now: datetime, users: dict[int, User]) -> dict:
    return {
        "roomNumber":    r.roomNumber,
        "floor":         r.floor,
        "building":      r.building,
        "type":          r.type,
        "capacity":      r.capacity,
        "equipment":     r.equipment,
        "currentStatus": resolve_status(r, now).value,
        "schedule":      [_serialize_slot(s, users) for s in r.schedule],
        "lastUpdated":   _iso(r.lastUpdated),
        "updatedBy":     user_ref(users.get(r.updatedById)),
    }


def status_event(r: Room, actor: User | None, now: datetime | None = None) -> dict:
    """Payload of a ``roomStatusUpdate`` broadcast."""
    return {
        "roomNumber":  r.roomNumber,
        "floor":       r.floor,
        "status":      resolve_status(r, now).value,
        "lastUpdated": _iso(r.lastUpdated),
        "updatedBy":   user_ref(actor),
    }


# ─── Batch Result ─────────────────────────────────────────────────────────────
@dataclass
class BatchResult:
    succeeded: list[dict] = field(default_factory=list)
    failed:    list[dict] = field(default_factory=list)
    # (event, payload, floor) tuples, one per successful entry, in input order
    events:    list[tuple[str, dict, int]] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (f"Bulk update completed. {len(self.succeeded)} successful, "
                f"{len(self.failed)} failed.")

    def to_response(self) -> dict:
        return {"successful": self.succeeded, "errors": self.failed}


class RoomService:

    # ─── Queries ──────────────────────────────────────────────────────────────
    def _get(self, db: Session, room_number: str) -> Room:
        r = db.query(Room).filter(Room.roomNumber == room_number).first()
        if not r:
            raise NotFoundException("Room")
        return r

    def list_rooms(
        self, db: Session,
        floor: int | None = None, building: str | None = None,
        room_type: str | None = None, status: str | None = None,
        now: datetime | None = None,
    ) -> list[dict]:
        q = db.query(Room).options(selectinload(Room.schedule))

        if floor is not None:
            q = q.filter(Room.floor == floor)
        if building and building.strip():
            q = q.filter(Room.building == building)
        if room_type and room_type.strip():
            q = q.filter(Room.type == room_type)

        rooms = q.order_by(Room.floor, Room.roomNumber).all()
        now = now or local_now()

        # Unknown status values are ignored rather than rejected
        if status in {s.value for s in RoomStatus}:
            rooms = [r for r in rooms if resolve_status(r, now).value == status]

        users = _load_users(db, [r.updatedById for r in rooms]
                            + [s.reservedById for r in rooms for s in r.schedule])
        return [_serialize(r, now, users) for r in rooms]

    def get_room(self, db: Session, room_number: str, now: datetime | None = None) -> dict:
        r = self._get(db, room_number)
        users = _load_users(db, [r.updatedById] + [s.reservedById for s in r.schedule])
        return _serialize(r, now or local_now(), users)

    def get_schedule(self, db: Session, room_number: str, day: date | None = None) -> dict:
        r = self._get(db, room_number)
        users = _load_users(db, [s.reservedById for s in r.schedule])
        # Slots recur daily, so every date shares the same schedule
        return {
            "roomNumber": r.roomNumber,
            "date":       (day or local_now().date()).isoformat(),
            "schedule":   [_serialize_slot(s, users) for s in r.schedule],
        }

    def get_status(self, db: Session, room_number: str, now: datetime | None = None) -> dict:
        """Single-room status pull used by ``getRoomStatus``."""
        r = self._get(db, room_number)
        users = _load_users(db, [r.updatedById])
        return {
            "roomNumber":  r.roomNumber,
            "status":      resolve_status(r, now).value,
            "lastUpdated": _iso(r.lastUpdated),
            "updatedBy":   user_ref(users.get(r.updatedById)),
        }

    def status_snapshot(self, db: Session, now: datetime | None = None) -> list[dict]:
        now = now or local_now()
        rooms = (db.query(Room).options(selectinload(Room.schedule))
                 .order_by(Room.floor, Room.roomNumber).all())
        return [
            {
                "roomNumber":  r.roomNumber,
                "floor":       r.floor,
                "status":      resolve_status(r, now).value,
                "lastUpdated": _iso(r.lastUpdated),
            }
            for r in rooms
        ]

    def stats(self, db: Session, now: datetime | None = None) -> dict:
        now = now or local_now()
        rooms = db.query(Room).options(selectinload(Room.schedule)).all()
        by_status = Counter(resolve_status(r, now).value for r in rooms)

        by_floor = (db.query(Room.floor, func.count(Room.id))
                    .group_by(Room.floor).order_by(Room.floor).all())
        by_type = (db.query(Room.type, func.count(Room.id))
                   .group_by(Room.type).order_by(func.count(Room.id).desc()).all())
        by_building = (db.query(Room.building, func.count(Room.id))
                       .group_by(Room.building).order_by(func.count(Room.id).desc()).all())

        return {
            "total":       len(rooms),
            **{s.value: by_status.get(s.value, 0) for s in RoomStatus},
            "byFloor":     {("Ground Floor" if f == 0 else f"Floor {f}"): c for f, c in by_floor},
            "byType":      {t: c for t, c in by_type},
            "byBuilding":  {b: c for b, c in by_building},
        }

    # ─── Room CRUD ────────────────────────────────────────────────────────────
    def create_room(self, db: Session, data: RoomCreateRequest, actor: User) -> dict:
        ensure_admin(actor)
        if db.query(Room).filter(Room.roomNumber == data.roomNumber).first():
            raise DuplicateEntryException("Room with this number already exists", field="roomNumber")

        now = local_now()
        room = Room(
            roomNumber=data.roomNumber,
            floor=data.floor,
            building=data.building or settings.DEFAULT_BUILDING,
            type=data.type.value,
            capacity=data.capacity,
            equipment=data.equipment,
            currentStatus=RoomStatus.FREE,
            lastUpdated=now,
            updatedById=actor.id,
        )
        db.add(room)
        db.commit()
        db.refresh(room)
        logger.info(f"Room {room.roomNumber} created by {actor.username}")
        return _serialize(room, now, {actor.id: actor})

    def update_room(self, db: Session, room_number: str, data: RoomUpdateRequest, actor: User) -> dict:
        ensure_admin(actor)
        r = self._get(db, room_number)

        if data.type:              r.type      = data.type.value
        if data.capacity is not None: r.capacity = data.capacity
        if data.equipment:         r.equipment = data.equipment.strip()
        if data.building:          r.building  = data.building.strip()
        if data.floor is not None: r.floor     = data.floor

        now = local_now()
        r.updatedById = actor.id
        r.lastUpdated = now
        db.commit()
        db.refresh(r)
        users = _load_users(db, [s.reservedById for s in r.schedule])
        users[actor.id] = actor
        return _serialize(r, now, users)

    def delete_room(self, db: Session, room_number: str, actor: User) -> dict:
        ensure_admin(actor)
        r = self._get(db, room_number)
        deleted = {"roomNumber": r.roomNumber, "floor": r.floor}
        db.delete(r)
        db.commit()
        logger.info(f"Room {room_number} deleted by {actor.username}")
        return deleted

    # ─── Status Mutations ─────────────────────────────────────────────────────
    def update_status(
        self, db: Session, room_number: str, data: RoomStatusRequest, actor: User,
        now: datetime | None = None,
    ) -> tuple[dict, dict]:
        """
        Apply one status change and persist it.
        Returns the acknowledgement and the ``roomStatusUpdate`` payload.
        """
        ensure_admin(actor)
        r = self._get(db, room_number)
        now = now or local_now()

        apply_update(r, data.status, actor.id, data.startTime, data.endTime, data.purpose, now=now)
        db.commit()
        db.refresh(r)

        status = resolve_status(r, now)
        logger.info(f"Room {r.roomNumber} status -> {status.value} by {actor.username}")
        ack = {
            "roomNumber":    r.roomNumber,
            "currentStatus": status.value,
            "lastUpdated":   _iso(r.lastUpdated),
        }
        return ack, status_event(r, actor, now)

    def bulk_update_status(
        self, db: Session, updates: list[Any], actor: User, now: datetime | None = None,
    ) -> BatchResult:
        """
        Apply each update in order, committing entry by entry.

        Entries are dicts or attribute objects of any shape. An entry without a
        usable roomNumber is recorded in ``failed`` like a missing room, as is
        any error raised while handling it; the remaining entries still run.
        """
        ensure_admin(actor)
        result = BatchResult()

        for update in updates:
            room_number = _field(update, "roomNumber")
            if not isinstance(room_number, str) or not room_number.strip():
                result.failed.append({"roomNumber": room_number, "error": "roomNumber is required"})
                continue

            try:
                r = db.query(Room).filter(Room.roomNumber == room_number).first()
                if not r:
                    result.failed.append({"roomNumber": room_number, "error": "Room not found"})
                    continue

                entry_now = now or local_now()
                apply_update(
                    r, _field(update, "status"), actor.id,
                    _field(update, "startTime"), _field(update, "endTime"), _field(update, "purpose"),
                    now=entry_now,
                )
                db.commit()
                db.refresh(r)

                status = resolve_status(r, entry_now)
                result.succeeded.append({"roomNumber": r.roomNumber, "status": status.value})
                result.events.append((ROOM_STATUS_UPDATE, status_event(r, actor, entry_now), r.floor))
            except Exception as e:
                db.rollback()
                message = e.message if isinstance(e, AppException) else str(e)
                if not isinstance(e, AppException):
                    logger.exception(f"Bulk update entry for room {room_number} failed")
                result.failed.append({"roomNumber": room_number, "error": message})

        logger.info(f"{result.summary} (by {actor.username})")
        return result


def _field(update: Any, name: str) -> Any:
    if isinstance(update, dict):
        return update.get(name)
    return getattr(update, name, None)


def load_status_snapshot(session_factory: sessionmaker) -> list[dict]:
    """Build the periodic snapshot in its own short-lived session."""
    with session_factory() as db:
        return room_service.status_snapshot(db)


room_service = RoomService()
