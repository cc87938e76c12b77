"""Narrow per-entity lookups and writes used by reconciliation.

Repositories wrap a caller-owned session and never commit: the transaction
belongs to whoever opened the session.
"""
from datetime import date, time
from typing import Optional

from sqlmodel import Session, select

from examsync.models.mirror import Building, Participant, Room


class _Repository:
    def __init__(self, session: Session):
        self.session = session

    def save(self, obj):
        """Stage obj and flush so generated ids are available to the caller."""
        self.session.add(obj)
        self.session.flush()
        return obj


class BuildingRepository(_Repository):
    def find_by_external_id(self, external_id: int) -> Optional[Building]:
        return self.session.exec(
            select(Building).where(Building.external_id == external_id)
        ).first()


class RoomRepository(_Repository):
    def find_by_external_id(self, external_id: int) -> Optional[Room]:
        return self.session.exec(
            select(Room).where(Room.external_id == external_id)
        ).first()


class ParticipantRepository(_Repository):
    def find_by_slot(
        self,
        building_id: int,
        room_id: int,
        exam_date: date,
        start_time: time,
    ) -> Optional[Participant]:
        return self.session.exec(
            select(Participant).where(
                Participant.building_id == building_id,
                Participant.room_id == room_id,
                Participant.exam_date == exam_date,
                Participant.start_time == start_time,
            )
        ).first()
