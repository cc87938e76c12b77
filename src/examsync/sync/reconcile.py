"""
Reconciliation of fetched hall-system snapshots into the local mirror.

Every function here takes a session that is already inside a transaction
(see examsync.db.transaction) and never commits itself. Matching is by
external identity only; nothing is deleted, rows that vanish upstream
are left as they are.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from sqlmodel import Session

from examsync.db.repositories import (
    BuildingRepository,
    ParticipantRepository,
    RoomRepository,
)
from examsync.errors import ReconciliationError, UnresolvedReferenceWarning
from examsync.hallapi.schemas import ExternalFacility, ExternalRoom, TimeSlotOccupancy
from examsync.models.mirror import Building, MirrorSyncStatus, Participant, Room
from examsync.timeutil import utcnow

logger = logging.getLogger(__name__)


@dataclass
class RoomReconcileResult:
    created: int = 0
    updated: int = 0


@dataclass
class FacilityReconcileResult:
    processed: int = 0
    created: int = 0
    updated: int = 0
    rooms_created: int = 0
    rooms_updated: int = 0


@dataclass
class ParticipantReconcileResult:
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: List[UnresolvedReferenceWarning] = field(default_factory=list)


def reconcile_facilities(
    session: Session, facilities: Iterable[ExternalFacility]
) -> FacilityReconcileResult:
    """Create or update one Building per facility, then its nested rooms."""
    buildings = BuildingRepository(session)
    result = FacilityReconcileResult()

    for facility in facilities:
        result.processed += 1
        building = buildings.find_by_external_id(facility.id)
        if building is None:
            building = Building(external_id=facility.id, name=facility.name)
            _apply_facility(building, facility)
            buildings.save(building)
            result.created += 1
            logger.info("Created building: %s", facility.name)
        else:
            _apply_facility(building, facility)
            buildings.save(building)
            result.updated += 1
            logger.info("Updated building: %s", facility.name)

        rooms = reconcile_rooms(session, building, facility.rooms)
        result.rooms_created += rooms.created
        result.rooms_updated += rooms.updated

    return result


def reconcile_rooms(
    session: Session, building: Building, rooms: Iterable[ExternalRoom]
) -> RoomReconcileResult:
    """
    Create or update Rooms by external id, pinning each one to `building`.

    A room already mirrored under another building is moved: the remote
    system decides placement.
    """
    repo = RoomRepository(session)
    result = RoomReconcileResult()

    for ext_room in rooms:
        room = repo.find_by_external_id(ext_room.id)
        if room is None:
            room = Room(
                external_id=ext_room.id,
                building_id=building.id,
                number=_room_number(ext_room),
            )
            _apply_room(room, building, ext_room)
            repo.save(room)
            result.created += 1
        else:
            if room.building_id != building.id:
                logger.info(
                    "Room %s moved from building %s to %s",
                    ext_room.id, room.building_id, building.id,
                )
            _apply_room(room, building, ext_room)
            repo.save(room)
            result.updated += 1

    logger.info(
        "Synced rooms for building %s: %d created, %d updated",
        building.id, result.created, result.updated,
    )
    return result


def reconcile_hall_rooms(
    session: Session, facility_external_id: int, rooms: Iterable[ExternalRoom]
) -> RoomReconcileResult:
    """Reconcile the rooms of one already-mirrored hall."""
    building = BuildingRepository(session).find_by_external_id(facility_external_id)
    if building is None:
        raise ReconciliationError(
            f"No building mirrored for external hall id {facility_external_id}"
        )
    return reconcile_rooms(session, building, rooms)


def reconcile_participants(
    session: Session, exam_date: date, slots: Iterable[TimeSlotOccupancy]
) -> ParticipantReconcileResult:
    """
    Upsert one Participant row per (building, room, exam_date, start_time).

    Occupancies whose hall or room is not mirrored yet are skipped with a
    warning; they don't fail the batch. Repeats of the same key within one
    feed collapse onto one row holding the last count seen.
    """
    buildings = BuildingRepository(session)
    rooms = RoomRepository(session)
    participants = ParticipantRepository(session)
    result = ParticipantReconcileResult()

    for slot in slots:
        for occupancy in slot.participants:
            result.processed += 1
            building = buildings.find_by_external_id(occupancy.hall_id)
            room = rooms.find_by_external_id(occupancy.room_id)
            if building is None or room is None:
                warning = UnresolvedReferenceWarning(
                    occupancy.hall_id, occupancy.room_id, slot.start_time
                )
                logger.warning("%s", warning)
                result.skipped.append(warning)
                continue

            now = utcnow()
            participant = participants.find_by_slot(
                building.id, room.id, exam_date, slot.start_time
            )
            if participant is None:
                participant = Participant(
                    building_id=building.id,
                    room_id=room.id,
                    exam_date=exam_date,
                    start_time=slot.start_time,
                    participant_count=occupancy.participant_count,
                    last_synced_at=now,
                    sync_status=MirrorSyncStatus.SYNCED,
                )
                participants.save(participant)
                result.created += 1
            else:
                participant.participant_count = occupancy.participant_count
                participant.last_synced_at = now
                participant.sync_status = MirrorSyncStatus.SYNCED
                participant.sync_error = None
                participants.save(participant)
                result.updated += 1

    return result


# ─── Field mapping ────────────────────────────────────────────────────────────

def _apply_facility(building: Building, facility: ExternalFacility) -> None:
    building.external_uid = facility.uid
    building.name = facility.name
    building.address = facility.address
    building.capacity = facility.place_limit
    building.region_id = facility.region_id
    building.active = facility.active
    building.last_synced_at = utcnow()
    building.sync_status = MirrorSyncStatus.SYNCED
    building.sync_error = None


def _apply_room(room: Room, building: Building, ext_room: ExternalRoom) -> None:
    room.building_id = building.id
    room.name = ext_room.name
    room.number = _room_number(ext_room)
    room.capacity = ext_room.capacity
    room.active = ext_room.active
    room.last_synced_at = utcnow()
    room.sync_status = MirrorSyncStatus.SYNCED
    room.sync_error = None


def _room_number(ext_room: ExternalRoom) -> str:
    return ext_room.name or f"Room {ext_room.id}"
