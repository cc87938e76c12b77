"""Manual sync triggers and status."""
from datetime import date, datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import BaseModel

from examsync.errors import ExternalSourceError, ReconciliationError
from examsync.models.sync import SyncLog
from examsync.sync.service import SyncService

router = APIRouter()

NEXT_DAYS_WINDOW = 3


class SyncRunResponse(BaseModel):
    success: bool = True
    sync_log_id: int
    created: int
    updated: int
    duration: Optional[float]  # seconds


class ParticipantSyncResponse(SyncRunResponse):
    exam_date: date
    skipped: int


class SyncLogSummary(BaseModel):
    id: int
    status: str
    started_at: datetime
    completed_at: Optional[datetime]
    records_processed: int
    records_created: int
    records_updated: int
    records_deleted: int
    records_errored: int
    error_message: Optional[str]
    metadata: Optional[Dict[str, Any]]


class SyncStatusResponse(BaseModel):
    exam_halls: Optional[SyncLogSummary]
    hall_rooms: Optional[SyncLogSummary]
    participants: Optional[SyncLogSummary]


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


def _run_response(log: SyncLog) -> SyncRunResponse:
    return SyncRunResponse(
        sync_log_id=log.id,
        created=log.records_created,
        updated=log.records_updated,
        duration=log.duration_seconds,
    )


def _summary(log: Optional[SyncLog]) -> Optional[SyncLogSummary]:
    if log is None:
        return None
    return SyncLogSummary(
        id=log.id,
        status=log.status.value,
        started_at=log.started_at,
        completed_at=log.completed_at,
        records_processed=log.records_processed,
        records_created=log.records_created,
        records_updated=log.records_updated,
        records_deleted=log.records_deleted,
        records_errored=log.records_errored,
        error_message=log.error_message,
        metadata=log.sync_metadata,
    )


async def _surface_errors(coro):
    """Await a sync run, mapping sync failures to HTTP errors."""
    try:
        return await coro
    except ExternalSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except ReconciliationError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/exam-halls", response_model=SyncRunResponse)
async def sync_exam_halls(service: SyncService = Depends(get_sync_service)):
    """Run an exam halls + rooms sync now and report its outcome."""
    log = await _surface_errors(service.run_facility_sync())
    return _run_response(log)


@router.post("/hall-rooms/{hall_id}", response_model=SyncRunResponse)
async def sync_hall_rooms(
    hall_id: int, service: SyncService = Depends(get_sync_service)
):
    log = await _surface_errors(service.run_hall_rooms_sync(hall_id))
    return _run_response(log)


# Registered before /participants/{exam_date} so the literal path wins.
@router.post("/participants/next-3-days")
async def sync_participants_window(
    background_tasks: BackgroundTasks,
    service: SyncService = Depends(get_sync_service),
):
    """
    Start the participant sync for today and the next two days.
    Returns immediately; per-date outcomes land in the sync ledger.
    """
    background_tasks.add_task(service.run_participant_sync_window, NEXT_DAYS_WINDOW)
    return {
        "success": True,
        "message": f"Participants sync for next {NEXT_DAYS_WINDOW} days initiated",
    }


@router.post("/participants/{exam_date}", response_model=ParticipantSyncResponse)
async def sync_participants(
    exam_date: date, service: SyncService = Depends(get_sync_service)
):
    log = await _surface_errors(service.run_participant_sync(exam_date))
    return ParticipantSyncResponse(
        sync_log_id=log.id,
        exam_date=exam_date,
        created=log.records_created,
        updated=log.records_updated,
        skipped=log.records_errored,
        duration=log.duration_seconds,
    )


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(service: SyncService = Depends(get_sync_service)):
    """Return the most recent sync log of each type."""
    latest = {t.value: _summary(log) for t, log in service.get_sync_status().items()}
    return SyncStatusResponse(**latest)
