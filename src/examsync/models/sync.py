"""Sync ledger model."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from examsync.timeutil import utcnow


class SyncType(str, Enum):
    EXAM_HALLS = "exam_halls"
    HALL_ROOMS = "hall_rooms"
    PARTICIPANTS = "participants"


class SyncStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncLog(SQLModel, table=True):
    """Records each sync attempt for audit and debugging.

    Inserted as IN_PROGRESS when a run starts and closed exactly once as
    COMPLETED or FAILED. Never deleted.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    sync_type: SyncType = Field(index=True)
    status: SyncStatus = Field(default=SyncStatus.IN_PROGRESS)
    started_at: datetime = Field(default_factory=utcnow, index=True)
    completed_at: Optional[datetime] = None

    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_deleted: int = 0
    records_errored: int = 0

    error_message: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON)
    )
    # "metadata" is reserved on declarative classes, hence the attribute name
    sync_metadata: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column("metadata", JSON)
    )

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()
