"""
Seed the default campus rooms.

Usage:
    python -m app.scripts.seed_rooms

Rooms are only inserted when the rooms table is empty.
"""

import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.database import SessionLocal
from app.models import Room, RoomStatus, RoomType

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = [
    # Ground Floor
    ("G01", 0, RoomType.LECTURE_THEATRE,          200, "Projector, microphone system, tiered seating"),
    ("G02", 0, RoomType.ASSEMBLY_HALL,            300, "Stage, sound system, lighting"),
    ("G03", 0, RoomType.CAFETERIA,                150, "Kitchen facilities, dining tables"),
    ("G04", 0, RoomType.LIBRARY,                  100, "Reading areas, computer terminals"),
    ("G05", 0, RoomType.COMPUTER_LAB,              30, "30 PCs, projector, network access"),
    # First Floor
    ("101", 1, RoomType.LECTURE_THEATRE,          120, "Interactive whiteboard, projector, audio system"),
    ("102", 1, RoomType.SEMINAR_ROOM,              25, "Modular tables, whiteboard"),
    ("103", 1, RoomType.COMPUTER_LAB,              25, "25 workstations, software suite"),
    ("104", 1, RoomType.PHYSICS_LABORATORY,        20, "Laboratory benches, scientific equipment"),
    ("105", 1, RoomType.CHEMISTRY_LABORATORY,      24, "Fume cupboards, safety equipment"),
    ("106", 1, RoomType.STUDY_ROOM,                12, "Study desks, quiet environment"),
    # Second Floor
    ("201", 2, RoomType.LECTURE_THEATRE,           80, "Smart board, video conferencing"),
    ("202", 2, RoomType.SEMINAR_ROOM,              20, "Flexible seating, presentation screen"),
    ("203", 2, RoomType.IT_LABORATORY,             18, "High-spec computers, development software"),
    ("204", 2, RoomType.CONFERENCE_ROOM,           16, "Video conferencing, presentation facilities"),
    ("205", 2, RoomType.LANGUAGE_LABORATORY,       24, "Audio equipment, language software"),
    ("206", 2, RoomType.MULTIMEDIA_ROOM,           30, "Interactive displays, media equipment"),
    # Third Floor
    ("301", 3, RoomType.RESEARCH_LABORATORY,       15, "Specialized research equipment"),
    ("302", 3, RoomType.PROGRAMMING_DEPARTMENT,    10, "Faculty offices, meeting space"),
    ("303", 3, RoomType.MEETING_ROOM,               8, "Conference table, video link"),
    ("304", 3, RoomType.DEANS_OFFICE,               6, "Executive office, reception area"),
    ("305", 3, RoomType.SERVER_ROOM,                0, "IT infrastructure, climate control"),
    ("306", 3, RoomType.VICE_CHANCELLORS_OFFICE,    8, "Executive suite, meeting area"),
    ("307", 3, RoomType.COUNCIL_CHAMBER,           40, "Formal meeting setup, recording facilities"),
    ("308", 3, RoomType.TEACHING_RESOURCE_CENTRE,  20, "Educational materials, printing facilities"),
    ("309", 3, RoomType.DESIGN_STUDIO,             25, "Drawing tables, design software"),
]


def seed_default_rooms(db: Session) -> int:
    """Insert DEFAULT_ROOMS into an empty table. Returns the number of rooms inserted."""
    existing = db.query(Room).count()
    if existing:
        logger.info(f"Skipping room seed, {existing} room(s) already present")
        return 0

    for number, floor, room_type, capacity, equipment in DEFAULT_ROOMS:
        db.add(Room(
            roomNumber=number,
            floor=floor,
            building=settings.DEFAULT_BUILDING,
            type=room_type.value,
            capacity=capacity,
            equipment=equipment,
            currentStatus=RoomStatus.FREE,
        ))
    db.commit()
    logger.info(f"Seeded {len(DEFAULT_ROOMS)} default rooms")
    return len(DEFAULT_ROOMS)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    with SessionLocal() as db:
        seed_default_rooms(db)


if __name__ == "__main__":
    main()
