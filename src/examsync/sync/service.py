"""
SyncService: orchestrates fetching from the hall system and reconciling into the mirror.

Flow for a single run:
  1. Open SyncLog (status=IN_PROGRESS)
  2. Fetch the snapshot from the hall API
  3. Reconcile it into the mirror inside one transaction
  4. Close SyncLog (status=COMPLETED) with counters

On any exception, cancellation included: roll back, close SyncLog
(status=FAILED) and re-raise the original error.

Runs of the same sync type are serialized within the process. The
participant window runs its dates one after another and isolates each
date's failure from the rest.
"""
import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional

from examsync.db.transaction import with_transaction
from examsync.models.sync import SyncLog, SyncType
from examsync.sync.ledger import SyncLedger
from examsync.sync.reconcile import (
    reconcile_facilities,
    reconcile_hall_rooms,
    reconcile_participants,
)
from examsync.timeutil import upcoming_dates

logger = logging.getLogger(__name__)


class SyncService:
    """Drives facility, hall-room and participant sync runs."""

    def __init__(self, client, engine, ledger: Optional[SyncLedger] = None):
        """
        Args:
            client: HallApiClient instance (or AsyncMock in tests).
            engine: SQLAlchemy engine holding the mirror and the ledger.
            ledger: SyncLedger; defaults to one on the same engine.
        """
        self.client = client
        self.engine = engine
        self.ledger = ledger or SyncLedger(engine)
        self._locks: Dict[SyncType, asyncio.Lock] = {}

    async def run_facility_sync(self) -> SyncLog:
        """Mirror every exam hall and its rooms. Returns the closed SyncLog."""
        async with self._lock(SyncType.EXAM_HALLS):
            log = self.ledger.open(SyncType.EXAM_HALLS)
            logger.info("Starting exam halls sync (log %s)", log.id)
            try:
                facilities = await self.client.fetch_facilities()
                result = with_transaction(
                    self.engine,
                    lambda session: reconcile_facilities(session, facilities),
                )
                log = self.ledger.complete(
                    log,
                    processed=result.processed,
                    created=result.created,
                    updated=result.updated,
                    metadata={
                        "rooms_created": result.rooms_created,
                        "rooms_updated": result.rooms_updated,
                    },
                )
            except BaseException as exc:
                self._fail(log, exc, "Exam halls sync failed")
                raise

            logger.info(
                "Exam halls sync completed: %d created, %d updated",
                result.created, result.updated,
            )
            return log

    async def run_hall_rooms_sync(self, facility_external_id: int) -> SyncLog:
        """Re-mirror the rooms of one hall via the per-hall endpoint."""
        async with self._lock(SyncType.HALL_ROOMS):
            log = self.ledger.open(
                SyncType.HALL_ROOMS, metadata={"hall_id": facility_external_id}
            )
            try:
                rooms = await self.client.fetch_rooms_for_facility(facility_external_id)
                result = with_transaction(
                    self.engine,
                    lambda session: reconcile_hall_rooms(
                        session, facility_external_id, rooms
                    ),
                )
                log = self.ledger.complete(
                    log,
                    processed=len(rooms),
                    created=result.created,
                    updated=result.updated,
                )
            except BaseException as exc:
                self._fail(log, exc, f"Hall rooms sync for hall {facility_external_id} failed")
                raise

            logger.info(
                "Hall rooms sync for hall %s completed: %d created, %d updated",
                facility_external_id, result.created, result.updated,
            )
            return log

    async def run_participant_sync(self, exam_date: date) -> SyncLog:
        """Mirror participant counts for one exam date, all-or-nothing."""
        async with self._lock(SyncType.PARTICIPANTS):
            log = self.ledger.open(
                SyncType.PARTICIPANTS, metadata={"exam_date": exam_date.isoformat()}
            )
            try:
                slots = await self.client.fetch_participants(exam_date)
                result = with_transaction(
                    self.engine,
                    lambda session: reconcile_participants(session, exam_date, slots),
                )
                log = self.ledger.complete(
                    log,
                    processed=result.processed,
                    created=result.created,
                    updated=result.updated,
                    errored=len(result.skipped),
                    metadata={"skipped": [w.as_dict() for w in result.skipped]}
                    if result.skipped
                    else None,
                )
            except BaseException as exc:
                self._fail(log, exc, f"Participants sync for {exam_date} failed")
                raise

            logger.info(
                "Participants sync for %s completed: %d created, %d updated, %d skipped",
                exam_date, result.created, result.updated, len(result.skipped),
            )
            return log

    async def run_participant_sync_window(
        self, days: int, start: Optional[date] = None
    ) -> List[Optional[SyncLog]]:
        """
        Sync `days` consecutive dates starting today, one after another.

        A failing date is logged and leaves None in its slot of the returned
        list; later dates still run.
        """
        logger.info("Starting participants sync for next %d days", days)
        results: List[Optional[SyncLog]] = []
        for exam_date in upcoming_dates(days, start=start):
            try:
                results.append(await self.run_participant_sync(exam_date))
            except Exception:
                logger.error(
                    "Failed to sync participants for %s", exam_date, exc_info=True
                )
                results.append(None)
        return results

    def get_sync_status(self) -> Dict[SyncType, Optional[SyncLog]]:
        """Latest SyncLog per sync type (None if that type never ran)."""
        return self.ledger.latest_by_type()

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _lock(self, sync_type: SyncType) -> asyncio.Lock:
        if sync_type not in self._locks:
            self._locks[sync_type] = asyncio.Lock()
        return self._locks[sync_type]

    def _fail(self, log: SyncLog, exc: BaseException, message: str) -> None:
        """Close the run as FAILED. A ledger error here is logged, never raised over exc."""
        if isinstance(exc, asyncio.CancelledError):
            logger.warning("%s: cancelled", message)
        else:
            logger.error("%s: %s", message, exc, exc_info=True)
        try:
            self.ledger.fail(log, exc)
        except Exception:
            logger.error("Could not close sync log %s as failed", log.id, exc_info=True)
