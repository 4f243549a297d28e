from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus, ClockMethod


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day."""

    attendance_id: int
    user_id: int
    company_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    working_hours: Optional[Decimal]
    status: AttendanceStatus
    is_late: bool = False
    is_auto_clocked_out: bool = False
    is_manual: bool = False
    is_processed: bool = False
    processed_at: Optional[datetime] = None
    clock_in_method: Optional[ClockMethod] = None
    clock_out_method: Optional[ClockMethod] = None
    biometric_device_id: Optional[str] = None
    edited_by: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceOverviewRow:
    """Read-model for the owner overview: every employee, with or without a record."""

    user_id: int
    full_name: str
    email: str
    record: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class AttendanceEdit:
    """Owner manual edit. ``None`` keeps the current value."""

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MonthlyAttendanceSummary:
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    total_hours: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class EmployeeMonth:
    """One employee's records for a month, with their day counts."""

    user_id: int
    full_name: str
    email: str
    year: int
    month: int
    records: tuple[AttendanceRecord, ...]
    summary: MonthlyAttendanceSummary
