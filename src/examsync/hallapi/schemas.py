"""Wire records returned by the remote hall system (camelCase JSON)."""
from datetime import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExternalRoom(_WireModel):
    id: int
    name: Optional[str] = None
    capacity: int = 0
    exam_hall_id: Optional[int] = Field(default=None, alias="examHallId")
    active: bool = Field(default=True, alias="isActive")  # remote sends 0/1


class ExternalFacility(_WireModel):
    id: int
    uid: Optional[str] = None
    name: str
    address: Optional[str] = None
    place_limit: int = Field(default=0, alias="placeLimit")
    region_id: Optional[int] = Field(default=None, alias="regionId")
    active: bool = Field(default=True, alias="isActive")
    rooms: List[ExternalRoom] = Field(default_factory=list)


class RoomOccupancy(_WireModel):
    hall_id: int = Field(alias="hallId")
    hall_name: Optional[str] = Field(default=None, alias="hallName")
    room_id: int = Field(alias="roomId")
    room_name: Optional[str] = Field(default=None, alias="roomName")
    participant_count: int = Field(default=0, alias="participantCount")


class TimeSlotOccupancy(_WireModel):
    start_time: time = Field(alias="startTime")  # "09:00" or "09:00:00"
    participants: List[RoomOccupancy] = Field(default_factory=list)
