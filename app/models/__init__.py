"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters: import parent tables before child tables.
"""

from app.models.role import RoleName
from app.models.user import User
from app.models.room import Room, RoomStatus, RoomType
from app.models.time_slot import TimeSlot

__all__ = [
    "RoleName",
    "User",
    "Room",
    "RoomStatus",
    "RoomType",
    "TimeSlot",
]
