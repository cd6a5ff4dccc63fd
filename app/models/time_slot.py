from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.room import RoomStatus, status_enum


class TimeSlot(Base):
    __tablename__ = "time_slots"
    __table_args__ = (
        UniqueConstraint("roomId", "startTime", "endTime", name="uq_time_slots_room_interval"),
    )

    id           = Column(Integer, primary_key=True, index=True)
    roomId       = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    startTime    = Column(String(5), nullable=False)   # HH:MM
    endTime      = Column(String(5), nullable=False)   # HH:MM
    status       = Column(status_enum(), default=RoomStatus.FREE, nullable=False)
    reservedById = Column(Integer, nullable=True)      # weak reference to users.id, no FK
    purpose      = Column(String(500), nullable=False, default="")

    # ─── Relationships ─────────────────────────────────────────────────────────
    room = relationship("Room", back_populates="schedule")

    def covers(self, clock: str) -> bool:
        return self.startTime <= clock <= self.endTime

    def __repr__(self):
        return f"<TimeSlot room={self.roomId} {self.startTime}-{self.endTime} status={self.status}>"
