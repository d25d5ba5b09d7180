"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a backend ISO-8601 timestamp (a trailing 'Z' is accepted); None if absent or invalid"""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
