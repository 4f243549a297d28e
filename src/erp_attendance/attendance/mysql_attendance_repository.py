from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import month_bounds
from ..core.enums import AttendanceStatus, ClockMethod, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, matched, money
from .model import AttendanceOverviewRow, AttendanceRecord, MonthlyAttendanceSummary
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    a.attendance_id, a.user_id, a.company_id, a.work_date, a.check_in_time, a.check_out_time,
    a.working_hours, a.status, a.is_late, a.is_auto_clocked_out, a.is_manual, a.is_processed,
    a.processed_at, a.clock_in_method, a.clock_out_method, a.biometric_device_id, a.edited_by, a.notes
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        work_date=r["work_date"],
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        working_hours=money(r.get("working_hours")),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        is_auto_clocked_out=bool(r.get("is_auto_clocked_out")),
        is_manual=bool(r.get("is_manual")),
        is_processed=bool(r.get("is_processed")),
        processed_at=r.get("processed_at"),
        clock_in_method=ClockMethod(r["clock_in_method"]) if r.get("clock_in_method") else None,
        clock_out_method=ClockMethod(r["clock_out_method"]) if r.get("clock_out_method") else None,
        biometric_device_id=r.get("biometric_device_id"),
        edited_by=r.get("edited_by"),
        notes=r.get("notes"),
    )


def _company_clause(company_id: Optional[int], params: list, alias: str = "") -> str:
    if company_id is None:
        return ""
    params.append(int(company_id))
    return f" AND {alias}company_id=%s"


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance a WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance a WHERE a.user_id=%s AND a.work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance a
                WHERE a.user_id=%s AND a.work_date >= %s AND a.work_date < %s
                ORDER BY a.work_date ASC
                """,
                (int(user_id), start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_overview_for_date(self, *, company_id: int, work_date: date) -> Sequence[AttendanceOverviewRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id AS employee_id, u.full_name, u.email, {_RECORD_COLUMNS}
                FROM users u
                LEFT JOIN attendance a ON a.user_id = u.user_id AND a.work_date = %s
                WHERE u.company_id=%s AND u.role=%s AND u.is_active=1
                ORDER BY u.full_name ASC
                """,
                (work_date, int(company_id), Role.EMPLOYEE.value),
            )
            return [
                AttendanceOverviewRow(
                    user_id=int(r["employee_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    record=_row_to_record(r) if r.get("attendance_id") else None,
                )
                for r in fetchall(cur)
            ]

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance(
                        user_id, company_id, work_date, check_in_time, is_late,
                        clock_in_method, biometric_device_id, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        int(company_id),
                        work_date,
                        check_in_time,
                        int(bool(is_late)),
                        method.value,
                        device_id,
                        AttendanceStatus.UNSET.value,
                    ),
                )
                return int(cur.lastrowid)
            except IntegrityError as exc:
                if not is_duplicate_key(exc):
                    raise

            # The day already has a row: claim it only if nobody has clocked in yet.
            cur.execute(
                """
                UPDATE attendance
                SET check_in_time=%s, is_late=%s, clock_in_method=%s, biometric_device_id=%s
                WHERE user_id=%s AND work_date=%s AND check_in_time IS NULL AND is_processed=0
                """,
                (check_in_time, int(bool(is_late)), method.value, device_id, int(user_id), work_date),
            )
            if not matched(cur):
                return None

            cur.execute("SELECT attendance_id FROM attendance WHERE user_id=%s AND work_date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return int(r["attendance_id"]) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_time=%s, working_hours=%s, status=%s, clock_out_method=%s,
                    biometric_device_id=COALESCE(%s, biometric_device_id)
                WHERE attendance_id=%s
                  AND check_in_time IS NOT NULL AND check_out_time IS NULL AND is_processed=0
                """,
                (check_out_time, working_hours, status.value, method.value, device_id, int(attendance_id)),
            )
            return matched(cur)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_in_time=%s, check_out_time=%s, working_hours=%s, status=%s, notes=%s,
                    is_auto_clocked_out=%s, is_manual=1, edited_by=%s
                WHERE attendance_id=%s AND is_processed=0
                """,
                (
                    check_in_time,
                    check_out_time,
                    working_hours,
                    status.value,
                    notes,
                    int(bool(is_auto_clocked_out)),
                    int(edited_by),
                    int(attendance_id),
                ),
            )
            return matched(cur)

    def list_open_for_date(self, work_date: date, *, company_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        params: list[object] = [work_date]
        company = _company_clause(company_id, params, "a.")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance a
                WHERE a.work_date=%s AND a.check_in_time IS NOT NULL
                  AND a.check_out_time IS NULL AND a.is_processed=0{company}
                ORDER BY a.attendance_id ASC
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def auto_clock_out(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        working_hours: Decimal,
        status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_time=%s, working_hours=%s, status=%s, is_auto_clocked_out=1
                WHERE attendance_id=%s AND check_out_time IS NULL AND is_processed=0
                """,
                (check_out_time, working_hours, status.value, int(attendance_id)),
            )
            return matched(cur)

    def absentees_for_date(self, work_date: date, *, company_id: Optional[int] = None) -> Sequence[tuple[int, int]]:
        params: list[object] = [Role.EMPLOYEE.value, work_date]
        company = _company_clause(company_id, params, "u.")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.company_id
                FROM users u
                WHERE u.role=%s AND u.is_active=1
                  AND NOT EXISTS (
                      SELECT 1 FROM attendance a WHERE a.user_id = u.user_id AND a.work_date = %s
                  ){company}
                ORDER BY u.user_id ASC
                """,
                tuple(params),
            )
            return [(int(r["user_id"]), int(r["company_id"])) for r in fetchall(cur)]

    def create_absent(self, *, user_id: int, company_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # IGNORE: a concurrent run (or a late clock-in) may have created the row already.
            cur.execute(
                """
                INSERT IGNORE INTO attendance(user_id, company_id, work_date, status, is_processed)
                VALUES(%s,%s,%s,%s,0)
                """,
                (int(user_id), int(company_id), work_date, AttendanceStatus.ABSENT.value),
            )
            return matched(cur)

    def lock_records_for_date(self, work_date: date, *, processed_at: datetime, company_id: Optional[int] = None) -> int:
        params: list[object] = [processed_at, work_date]
        company = _company_clause(company_id, params)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance
                SET is_processed=1, processed_at=%s
                WHERE work_date=%s AND is_processed=0{company}
                """,
                tuple(params),
            )
            return int(cur.rowcount)

    def summarize_month(self, user_id: int, *, year: int, month: int, locked_only: bool = True) -> MonthlyAttendanceSummary:
        start, end = month_bounds(year, month)
        locked = " AND is_processed=1" if locked_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    COALESCE(SUM(status=%s), 0) AS present_days,
                    COALESCE(SUM(status=%s), 0) AS absent_days,
                    COALESCE(SUM(status=%s), 0) AS half_days,
                    COALESCE(SUM(working_hours), 0) AS total_hours
                FROM attendance
                WHERE user_id=%s AND work_date >= %s AND work_date < %s{locked}
                """,
                (
                    AttendanceStatus.PRESENT.value,
                    AttendanceStatus.ABSENT.value,
                    AttendanceStatus.HALF_DAY.value,
                    int(user_id),
                    start,
                    end,
                ),
            )
            r = fetchone(cur) or {}
            return MonthlyAttendanceSummary(
                present_days=int(r.get("present_days") or 0),
                absent_days=int(r.get("absent_days") or 0),
                half_days=int(r.get("half_days") or 0),
                total_hours=money(r.get("total_hours") or 0),
            )
