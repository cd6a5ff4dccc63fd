import enum
from sqlalchemy import Column, Integer, String, Enum, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class RoomStatus(str, enum.Enum):
    FREE        = "free"
    OCCUPIED    = "occupied"
    RESERVED    = "reserved"
    MAINTENANCE = "maintenance"


class RoomType(str, enum.Enum):
    LECTURE_THEATRE          = "Lecture Theatre"
    SEMINAR_ROOM             = "Seminar Room"
    COMPUTER_LAB             = "Computer Lab"
    PHYSICS_LABORATORY       = "Physics Laboratory"
    CHEMISTRY_LABORATORY     = "Chemistry Laboratory"
    ASSEMBLY_HALL            = "Assembly Hall"
    LIBRARY                  = "Library"
    DEANS_OFFICE             = "Dean's Office"
    CAFETERIA                = "Cafeteria"
    IT_LABORATORY            = "IT Laboratory"
    CONFERENCE_ROOM          = "Conference Room"
    ELECTRONICS_LABORATORY   = "Electronics Laboratory"
    MULTIMEDIA_ROOM          = "Multimedia Room"
    MATHEMATICS_ROOM         = "Mathematics Room"
    LANGUAGE_LABORATORY      = "Language Laboratory"
    PROGRAMMING_DEPARTMENT   = "Programming Department"
    RESEARCH_LABORATORY      = "Research Laboratory"
    MEETING_ROOM             = "Meeting Room"
    ARCHIVE                  = "Archive"
    SERVER_ROOM              = "Server Room"
    VICE_CHANCELLORS_OFFICE  = "Vice-Chancellor's Office"
    COUNCIL_CHAMBER          = "Council Chamber"
    TEACHING_RESOURCE_CENTRE = "Teaching Resource Centre"
    DESIGN_STUDIO            = "Design Studio"
    STUDY_ROOM               = "Study Room"


def status_enum() -> Enum:
    """Column type persisting the lowercase status values rather than member names."""
    return Enum(RoomStatus, name="room_status", values_callable=lambda e: [m.value for m in e])


class Room(Base):
    __tablename__ = "rooms"

    id            = Column(Integer, primary_key=True, index=True)
    roomNumber    = Column(String(20), unique=True, nullable=False, index=True)
    floor         = Column(Integer, nullable=False, index=True)
    building      = Column(String(150), nullable=False, default="Main Building")
    type          = Column(String(100), nullable=False)
    capacity      = Column(Integer, nullable=False)
    equipment     = Column(String(500), nullable=False)
    currentStatus = Column(status_enum(), default=RoomStatus.FREE, nullable=False)
    lastUpdated   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedById   = Column(Integer, nullable=True)  # weak reference to users.id, no FK
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    schedule = relationship(
        "TimeSlot",
        back_populates="room",
        order_by="TimeSlot.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Room id={self.id} roomNumber={self.roomNumber} floor={self.floor} status={self.currentStatus}>"
