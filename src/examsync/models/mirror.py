"""Local mirror of the remote hall system: buildings, rooms, participant time-slots."""
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from examsync.timeutil import utcnow


class MirrorSyncStatus(str, Enum):
    SYNCED = "synced"
    SYNC_PENDING = "sync_pending"
    SYNC_ERROR = "sync_error"


class Building(SQLModel, table=True):
    """One row per exam hall. external_id is None for locally created halls, which sync never touches."""

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: Optional[int] = Field(default=None, unique=True, index=True)
    external_uid: Optional[str] = None

    name: str
    address: Optional[str] = None
    capacity: int = 0  # remote placeLimit
    region_id: Optional[int] = None
    active: bool = True

    last_synced_at: Optional[datetime] = None
    sync_status: MirrorSyncStatus = Field(default=MirrorSyncStatus.SYNCED)
    sync_error: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    rooms: List["Room"] = Relationship(back_populates="building")


class Room(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: Optional[int] = Field(default=None, unique=True, index=True)
    building_id: int = Field(foreign_key="building.id", index=True)

    name: Optional[str] = None
    number: str
    capacity: int = 0
    active: bool = True

    last_synced_at: Optional[datetime] = None
    sync_status: MirrorSyncStatus = Field(default=MirrorSyncStatus.SYNCED)
    sync_error: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    building: Optional[Building] = Relationship(back_populates="rooms")


class Participant(SQLModel, table=True):
    """
    Participant count for one room, one exam date, one start time.

    The remote feed has no per-record id, so (building_id, room_id, exam_date,
    start_time) is the identity used by reconciliation.
    """

    __table_args__ = (
        UniqueConstraint(
            "building_id", "room_id", "exam_date", "start_time",
            name="uq_participant_slot",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    building_id: int = Field(foreign_key="building.id", index=True)
    room_id: int = Field(foreign_key="room.id", index=True)
    exam_date: date = Field(index=True)
    start_time: time

    participant_count: int = 0

    last_synced_at: Optional[datetime] = None
    sync_status: MirrorSyncStatus = Field(default=MirrorSyncStatus.SYNCED)
    sync_error: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )
