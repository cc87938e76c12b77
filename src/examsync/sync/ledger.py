"""
SyncLedger: the audit trail of sync runs.

IN_PROGRESS ──► COMPLETED
     │
     └────────► FAILED

Each method uses its own short session so a ledger row survives the
rollback of the reconciliation transaction it describes.
"""
import traceback
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from examsync.models.sync import SyncLog, SyncStatus, SyncType
from examsync.timeutil import utcnow


class SyncLedger:
    def __init__(self, engine):
        self.engine = engine

    def open(
        self, sync_type: SyncType, metadata: Optional[Dict[str, Any]] = None
    ) -> SyncLog:
        log = SyncLog(
            sync_type=sync_type,
            status=SyncStatus.IN_PROGRESS,
            started_at=utcnow(),
            sync_metadata=metadata,
        )
        with Session(self.engine) as s:
            s.add(log)
            s.commit()
            s.refresh(log)
        return log

    def complete(
        self,
        log: SyncLog,
        *,
        processed: int,
        created: int,
        updated: int,
        errored: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SyncLog:
        def _apply(db_log: SyncLog) -> None:
            db_log.status = SyncStatus.COMPLETED
            db_log.records_processed = processed
            db_log.records_created = created
            db_log.records_updated = updated
            db_log.records_errored = errored
            if metadata:
                db_log.sync_metadata = {**(db_log.sync_metadata or {}), **metadata}

        return self._close(log, _apply)

    def fail(self, log: SyncLog, exc: BaseException) -> SyncLog:
        def _apply(db_log: SyncLog) -> None:
            db_log.status = SyncStatus.FAILED
            db_log.error_message = str(exc) or exc.__class__.__name__
            db_log.error_details = {
                "type": exc.__class__.__name__,
                "traceback": "".join(
                    traceback.format_exception(type(exc), exc, exc.__traceback__)
                ),
            }

        return self._close(log, _apply)

    def latest(self, sync_type: SyncType) -> Optional[SyncLog]:
        with Session(self.engine) as s:
            return s.exec(
                select(SyncLog)
                .where(SyncLog.sync_type == sync_type)
                .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
            ).first()

    def latest_by_type(self) -> Dict[SyncType, Optional[SyncLog]]:
        return {sync_type: self.latest(sync_type) for sync_type in SyncType}

    def _close(self, log: SyncLog, apply) -> SyncLog:
        with Session(self.engine) as s:
            db_log = s.get(SyncLog, log.id)
            if db_log is None:
                raise ValueError(f"SyncLog {log.id} does not exist")
            if db_log.status != SyncStatus.IN_PROGRESS:
                raise ValueError(
                    f"SyncLog {log.id} is already {db_log.status.value}"
                )
            apply(db_log)
            db_log.completed_at = utcnow()
            s.add(db_log)
            s.commit()
            s.refresh(db_log)
        return db_log
