from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, ClockMethod
from .model import AttendanceOverviewRow, AttendanceRecord, MonthlyAttendanceSummary


class AttendanceRepository(Protocol):
    """Attendance record store.

    Every mutating method is a guarded write: it returns False (or None) when
    its guard no longer holds, so concurrent callers get exactly one winner.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records with start_date <= work_date < end_date, oldest first."""

        raise NotImplementedError

    def list_overview_for_date(self, *, company_id: int, work_date: date) -> Sequence[AttendanceOverviewRow]:
        raise NotImplementedError

    def upsert_clock_in(
        self,
        *,
        user_id: int,
        company_id: int,
        work_date: date,
        check_in_time: datetime,
        is_late: bool,
        method: ClockMethod,
        device_id: Optional[str] = None,
    ) -> Optional[int]:
        """Claim the first clock-in of the day.

        Returns the attendance id, or None when the day already has a check-in
        (or is locked). Atomic on the (user_id, work_date) unique key.
        """

        raise NotImplementedError

    def update_clock_out(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        working_hours: Decimal,
        status: AttendanceStatus,
        method: ClockMethod,
        device_id: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def manual_update(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        working_hours: Optional[Decimal],
        status: AttendanceStatus,
        notes: Optional[str],
        edited_by: int,
        is_auto_clocked_out: bool = False,
    ) -> bool:
        """Owner overwrite; refused (False) once the record is processed."""

        raise NotImplementedError

    # Daily batch
    def list_open_for_date(self, work_date: date, *, company_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def auto_clock_out(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        working_hours: Decimal,
        status: AttendanceStatus,
    ) -> bool:
        raise NotImplementedError

    def absentees_for_date(self, work_date: date, *, company_id: Optional[int] = None) -> Sequence[tuple[int, int]]:
        """(user_id, company_id) of active employees with no record on work_date."""

        raise NotImplementedError

    def create_absent(self, *, user_id: int, company_id: int, work_date: date) -> bool:
        raise NotImplementedError

    def lock_records_for_date(self, work_date: date, *, processed_at: datetime, company_id: Optional[int] = None) -> int:
        raise NotImplementedError

    # Payroll input
    def summarize_month(self, user_id: int, *, year: int, month: int, locked_only: bool = True) -> MonthlyAttendanceSummary:
        raise NotImplementedError
