from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_BUSINESS_TIMEZONE
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_time_of_day(value: str) -> time:
    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def to_business_time(value: datetime, tz_name: str = DEFAULT_BUSINESS_TIMEZONE) -> datetime:
    """Convert an aware datetime to naive business-local time.

    Naive values are assumed to be business-local already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def parse_iso_datetime(value: str, tz_name: str = DEFAULT_BUSINESS_TIMEZONE) -> datetime:
    v = (value or "").strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid timestamp (ISO 8601): {value!r}")
    return to_business_time(parsed, tz_name)


def parse_clock_value(value: str, *, on_date: date, tz_name: str = DEFAULT_BUSINESS_TIMEZONE) -> datetime:
    """Accept either a full ISO timestamp or HH:MM on ``on_date``."""
    v = (value or "").strip()
    if not v:
        raise ValidationError("Time value is required")
    if "T" in v or "-" in v:
        return parse_iso_datetime(v, tz_name)
    return datetime.combine(on_date, parse_time_of_day(v))


def now_local(tz_name: str = DEFAULT_BUSINESS_TIMEZONE) -> datetime:
    """Current business-local time (naive).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    start = date(int(year), int(month), 1)
    end = date(int(year) + 1, 1, 1) if int(month) == 12 else date(int(year), int(month) + 1, 1)
    return start, end
