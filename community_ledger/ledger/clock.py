"""Record ids, locale timestamps and calendar-month arithmetic."""

from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from community_ledger.config import get_settings


def new_record_id() -> str:
    return uuid4().hex[:12]


def now_stamp(now: Optional[datetime] = None) -> str:
    """Locale timestamp string stored in updatedAt / createdAt."""
    now = now or datetime.now()
    return now.strftime(get_settings().ledger.timestamp_format)


def join_date_stamp(today: Optional[date] = None) -> str:
    today = today or date.today()
    return today.strftime(get_settings().ledger.join_date_format)


def stamp_to_epoch(stamp: Optional[str]) -> float:
    """
    Sort key of a stored timestamp string.

    Absent or unparseable stamps sort as the epoch (0). Browser-written
    stamps ("19/10/2026, 14:03:22") carry a comma after the date.
    """
    if not stamp:
        return 0.0
    fmt = get_settings().ledger.timestamp_format
    for parse in (
        lambda s: datetime.strptime(s.replace(",", ""), fmt),
        datetime.fromisoformat,
    ):
        try:
            return parse(stamp.strip()).timestamp()
        except (ValueError, OverflowError, OSError):
            continue
    return 0.0


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """
    Move a (year, 0-based month) pair by delta calendar months.

    Pure month arithmetic: the day of month never spills over.
    """
    index = year * 12 + month + delta
    return index // 12, index % 12
