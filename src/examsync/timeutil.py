"""Clock helpers shared by the ledger, reconciliation and the date window."""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo on the way back anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def upcoming_dates(days: int, start: Optional[date] = None) -> List[date]:
    """Return `days` consecutive calendar dates beginning at `start` (UTC today by default)."""
    if days < 0:
        raise ValueError("days must be >= 0")
    first = start or utcnow().date()
    return [first + timedelta(days=i) for i in range(days)]
