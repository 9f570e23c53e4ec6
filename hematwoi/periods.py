import calendar
import re
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidPeriodError(ValueError):
    pass


def current_period(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{now.year:04d}-{now.month:02d}"


def normalize_period(value: Optional[str]) -> str:
    """Return a ``YYYY-MM`` key; empty input means the current UTC month."""
    if value is None or not str(value).strip():
        return current_period()
    trimmed = str(value).strip()
    if _DAY_RE.match(trimmed):
        trimmed = trimmed[:7]
    if not _MONTH_RE.match(trimmed):
        raise InvalidPeriodError(f"Invalid month period: {value!r}")
    month = int(trimmed[5:7])
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month period: {value!r}")
    return trimmed


def _year_month(period: str) -> Tuple[int, int]:
    normalized = normalize_period(period)
    return int(normalized[:4]), int(normalized[5:7])


def days_in_period(period: str) -> int:
    year, month = _year_month(period)
    return calendar.monthrange(year, month)[1]


def month_range(period: Optional[str], today: Optional[date] = None) -> Tuple[str, str]:
    """Inclusive ISO date bounds of a month.

    When ``today`` falls inside the month the range stops at ``today``
    (month-to-date).
    """
    year, month = _year_month(period)
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    if today is not None and (today.year, today.month) == (year, month):
        end = today
    return start.isoformat(), end.isoformat()


def shift_period(period: str, months: int) -> str:
    year, month = _year_month(period)
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def next_period(period: str) -> str:
    return shift_period(period, 1)


def previous_periods(count: int = 13, anchor: Optional[str] = None) -> List[str]:
    """Newest first, starting at ``anchor`` (default current month)."""
    base = normalize_period(anchor)
    return [shift_period(base, -i) for i in range(max(0, count))]
