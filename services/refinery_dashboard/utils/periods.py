# services/refinery_dashboard/utils/periods.py

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, List, Tuple

TODAY = "today"


def utcnow() -> datetime:
    """Naive UTC now, the storage convention of every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def resolve_period(period: str | None, now: datetime | None = None) -> Tuple[datetime, datetime]:
    """
    Turns a period selector into an inclusive [start, end] interval.

    "today" (or nothing) is the current day, "YYYY-MM" a whole month.
    Raises ValueError for anything else.
    """
    now = now or utcnow()
    if not period or period == TODAY:
        return _day_bounds(now.date())

    try:
        month_start = datetime.strptime(period, "%Y-%m")
    except ValueError:
        raise ValueError(f"invalid period '{period}', expected 'today' or YYYY-MM")
    return month_bounds(month_start.year, month_start.month)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, last_day), time.max)
    return start, end


def month_range_bounds(first: str, last: str) -> Tuple[datetime, datetime]:
    """Interval from the first instant of month `first` to the last of `last`."""
    start, _ = resolve_period(first)
    _, end = resolve_period(last)
    if end < start:
        raise ValueError("end month must not be before start month")
    return start, end


def _day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        try:
            return to_naive_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None


def in_interval(value: Any, start: datetime, end: datetime) -> bool:
    moment = _as_datetime(value)
    if moment is None:
        return False
    return start <= moment <= end


def filter_by_period(rows: Iterable[Any], date_key: str, period: str | None,
                     now: datetime | None = None) -> List[Any]:
    """Keeps the rows whose `date_key` falls inside the period; undated rows are dropped."""
    start, end = resolve_period(period, now=now)
    return [row for row in rows if in_interval(_get(row, date_key), start, end)]


def _get(row: Any, key: str) -> Any:
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)
