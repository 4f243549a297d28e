"""Time & shift policy.

Pure rules on naive business-local timestamps. No I/O, no clock access: the
callers pass every timestamp in.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from ..core.constants import DEFAULT_FULL_DAY_HOURS, DEFAULT_SHIFT_END, DEFAULT_SHIFT_START
from ..core.enums import AttendanceStatus
from ..core.exceptions import OutsideShiftWindow, ValidationError

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class ShiftPolicy:
    shift_start: time = DEFAULT_SHIFT_START
    shift_end: time = DEFAULT_SHIFT_END
    full_day_hours: int = DEFAULT_FULL_DAY_HOURS

    @classmethod
    def from_settings(cls, settings) -> "ShiftPolicy":
        return cls(
            shift_start=getattr(settings, "SHIFT_START", DEFAULT_SHIFT_START),
            shift_end=getattr(settings, "SHIFT_END", DEFAULT_SHIFT_END),
            full_day_hours=int(getattr(settings, "FULL_DAY_HOURS", DEFAULT_FULL_DAY_HOURS)),
        )

    def shift_end_on(self, work_date: date) -> datetime:
        return datetime.combine(work_date, self.shift_end)

    def is_late_check_in(self, t: datetime) -> bool:
        return t.time() > self.shift_start

    def is_early_clock_out(self, t: datetime) -> bool:
        return t.time() < self.shift_end

    def is_within_clock_in_window(self, t: datetime) -> bool:
        return self.shift_start <= t.time() < self.shift_end

    def ensure_clock_in_window(self, t: datetime) -> None:
        if not self.is_within_clock_in_window(t):
            raise OutsideShiftWindow(
                f"Clock-in is only allowed between {self.shift_start:%H:%M} and {self.shift_end:%H:%M}",
                context={"attempted_at": t.isoformat()},
            )

    def working_hours(self, check_in: datetime, check_out: datetime) -> Decimal:
        if check_out <= check_in:
            raise ValidationError("Clock-out time must be after clock-in time")
        seconds = Decimal(int((check_out - check_in).total_seconds()))
        return (seconds / Decimal(3600)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)

    def classify_status(self, check_in: datetime, check_out: datetime, hours: Decimal) -> AttendanceStatus:
        # A full day needs both: stayed until shift end and enough hours.
        if self.is_early_clock_out(check_out):
            return AttendanceStatus.HALF_DAY
        if hours >= self.full_day_hours:
            return AttendanceStatus.PRESENT
        return AttendanceStatus.HALF_DAY

    def evaluate(self, check_in: datetime, check_out: datetime) -> tuple[Decimal, AttendanceStatus]:
        """Hours and status for a closed clock pair."""
        hours = self.working_hours(check_in, check_out)
        return hours, self.classify_status(check_in, check_out, hours)
