"""Date and time helpers shared by the services."""
from datetime import date, datetime, timezone
from typing import Optional
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes read back from SQLite as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamped to the end of shorter months."""
    return value + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole months from start to end; partial months are dropped."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def month_bounds(today: date):
    """First day of the month and first day of the next month."""
    first = today.replace(day=1)
    return first, first + relativedelta(months=1)
