import re
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from app.models.room import RoomStatus, RoomType

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class RoomCreateRequest(BaseModel):
    roomNumber: str
    floor:      int = Field(ge=0, le=10)
    building:   Optional[str] = None
    type:       RoomType
    capacity:   int = Field(ge=0)
    equipment:  str

    @field_validator("roomNumber", "equipment")
    @classmethod
    def check_not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("building")
    @classmethod
    def strip_building(cls, v):
        if v is None: return v
        return v.strip() or None


class RoomUpdateRequest(BaseModel):
    building:  Optional[str] = None
    type:      Optional[RoomType] = None
    capacity:  Optional[int] = Field(default=None, ge=0)
    equipment: Optional[str] = None
    floor:     Optional[int] = Field(default=None, ge=0, le=10)

    @field_validator("building", "equipment")
    @classmethod
    def check_not_empty(cls, v):
        if v is None: return v
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()


class RoomStatusRequest(BaseModel):
    """
    Body of a single status change. Without both ``startTime`` and ``endTime``
    the change overrides the room's current status immediately.
    """
    status:    RoomStatus
    startTime: Optional[str] = None
    endTime:   Optional[str] = None
    purpose:   Optional[str] = None

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time_of_day(cls, v):
        if v is None or v == "": return None
        if not TIME_OF_DAY.match(v): raise ValueError("Time must use 24h HH:MM format")
        return v

    @model_validator(mode="after")
    def check_interval(self) -> "RoomStatusRequest":
        if self.startTime and self.endTime and self.startTime > self.endTime:
            raise ValueError("startTime must not be after endTime")
        return self


class BulkStatusItem(BaseModel):
    """
    One room status change sent over the socket. ``status`` and the times stay
    loosely typed so the mutator reports them with its own error codes.
    """
    roomNumber: str
    status:     Optional[str] = None
    startTime:  Optional[str] = None
    endTime:    Optional[str] = None
    purpose:    Optional[str] = None


class BulkStatusRequest(BaseModel):
    # Entries are validated one by one while the batch runs
    updates: list[Any]
