"""
Room status resolution and schedule mutation.

Both functions are pure with respect to I/O: they read and mutate the Room
object they are handed and never touch the session or the broadcast hub.
The caller persists the room and publishes the change afterwards.

Slots are daily-recurring ``HH:MM`` intervals, inclusive on both ends, and
are compared as zero-padded strings. When slots overlap, the first one in
insertion order (``TimeSlot.id``) wins.
"""

import re
from datetime import datetime, timezone

from app.models.room import Room, RoomStatus
from app.models.time_slot import TimeSlot
from app.utils.exceptions import InvalidStatusException, InvalidTimeSlotException

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def local_now() -> datetime:
    return datetime.now().astimezone()


def clock_of(now: datetime) -> str:
    """Truncate a datetime to its ``HH:MM`` wall-clock time."""
    return now.strftime("%H:%M")


def parse_status(value) -> RoomStatus:
    if isinstance(value, RoomStatus):
        return value
    try:
        return RoomStatus(value)
    except ValueError:
        raise InvalidStatusException(value)


def active_slot(room: Room, now: datetime | None = None) -> TimeSlot | None:
    clock = clock_of(now or local_now())
    for slot in room.schedule:
        if slot.covers(clock):
            return slot
    return None


def resolve_status(room: Room, now: datetime | None = None) -> RoomStatus:
    """Status of the room at ``now``: the first covering slot, else the stored override."""
    slot = active_slot(room, now)
    if slot is not None:
        return parse_status(slot.status)
    return parse_status(room.currentStatus)


def _check_interval(start_time: str, end_time: str) -> None:
    if not isinstance(start_time, str) or not TIME_OF_DAY.match(start_time):
        raise InvalidTimeSlotException(f"Invalid startTime {start_time!r}, expected HH:MM", field="startTime")
    if not isinstance(end_time, str) or not TIME_OF_DAY.match(end_time):
        raise InvalidTimeSlotException(f"Invalid endTime {end_time!r}, expected HH:MM", field="endTime")
    if start_time > end_time:
        raise InvalidTimeSlotException("startTime must not be after endTime", field="startTime")


def apply_update(
    room: Room,
    status,
    actor_id: int | None,
    start_time: str | None = None,
    end_time: str | None = None,
    purpose: str | None = None,
    now: datetime | None = None,
) -> TimeSlot | None:
    """
    Apply one status change to ``room`` in place.

    With both ``start_time`` and ``end_time`` the slot for exactly that
    interval is overwritten (or appended), and the override is synced when the
    interval covers ``now``. Otherwise ``currentStatus`` is overridden
    directly. Everything is validated before the room is touched.

    Returns the written slot, or None for an immediate override.
    """
    new_status = parse_status(status)
    now = now or local_now()
    scoped = bool(start_time) and bool(end_time)
    if scoped:
        _check_interval(start_time, end_time)

    written = None
    if scoped:
        reserved_by = actor_id if new_status == RoomStatus.RESERVED else None
        written = next(
            (s for s in room.schedule if s.startTime == start_time and s.endTime == end_time),
            None,
        )
        if written is not None:
            written.status = new_status
            written.purpose = purpose or ""
            written.reservedById = reserved_by
        else:
            written = TimeSlot(
                startTime=start_time,
                endTime=end_time,
                status=new_status,
                reservedById=reserved_by,
                purpose=purpose or "",
            )
            room.schedule.append(written)

        if written.covers(clock_of(now)):
            room.currentStatus = new_status
    else:
        room.currentStatus = new_status

    room.lastUpdated = now.astimezone(timezone.utc) if now.tzinfo else now
    room.updatedById = actor_id
    return written
