from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CorrectionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, matched
from .model import AttendanceCorrection, CorrectionListItem
from .repository import CorrectionRepository

_CORRECTION_COLUMNS = """
    c.correction_id, c.attendance_id, c.user_id, c.requested_check_in, c.requested_check_out,
    c.reason, c.status, c.created_at, c.reviewed_by, c.reviewed_at, c.rejection_reason
"""


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        attendance_id: int,
        user_id: int,
        requested_check_in: datetime,
        requested_check_out: datetime,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_corrections(
                    attendance_id, user_id, requested_check_in, requested_check_out, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(attendance_id),
                    int(user_id),
                    requested_check_in,
                    requested_check_out,
                    reason,
                    CorrectionStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, correction_id: int) -> Optional[AttendanceCorrection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CORRECTION_COLUMNS} FROM attendance_corrections c WHERE c.correction_id=%s",
                (int(correction_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceCorrection(
                correction_id=int(r["correction_id"]),
                attendance_id=int(r["attendance_id"]),
                user_id=int(r["user_id"]),
                requested_check_in=r["requested_check_in"],
                requested_check_out=r["requested_check_out"],
                reason=r["reason"],
                status=CorrectionStatus(r["status"]),
                created_at=r.get("created_at"),
                reviewed_by=r.get("reviewed_by"),
                reviewed_at=r.get("reviewed_at"),
                rejection_reason=r.get("rejection_reason"),
            )

    def has_pending(self, *, attendance_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 FROM attendance_corrections
                WHERE attendance_id=%s AND user_id=%s AND status=%s
                LIMIT 1
                """,
                (int(attendance_id), int(user_id), CorrectionStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def list_corrections(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[CorrectionStatus] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionListItem]:
        sql = f"""
            SELECT {_CORRECTION_COLUMNS}, u.full_name, u.email, a.work_date
            FROM attendance_corrections c
            JOIN attendance a ON a.attendance_id = c.attendance_id
            JOIN users u ON u.user_id = c.user_id
            WHERE 1=1
        """
        params: list[object] = []
        if company_id is not None:
            sql += " AND a.company_id=%s"
            params.append(int(company_id))
        if user_id is not None:
            sql += " AND c.user_id=%s"
            params.append(int(user_id))
        if status is not None:
            sql += " AND c.status=%s"
            params.append(status.value)
        sql += " ORDER BY c.created_at DESC, c.correction_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                CorrectionListItem(
                    correction_id=int(r["correction_id"]),
                    attendance_id=int(r["attendance_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    work_date=r["work_date"],
                    requested_check_in=r["requested_check_in"],
                    requested_check_out=r["requested_check_out"],
                    reason=r["reason"],
                    status=CorrectionStatus(r["status"]),
                    created_at=r.get("created_at"),
                    reviewed_by=r.get("reviewed_by"),
                    reviewed_at=r.get("reviewed_at"),
                    rejection_reason=r.get("rejection_reason"),
                )
                for r in fetchall(cur)
            ]

    def approve(
        self,
        *,
        correction_id: int,
        reviewed_by: int,
        reviewed_at: datetime,
        check_in_time: datetime,
        check_out_time: datetime,
        working_hours: Decimal,
        status: AttendanceStatus,
        is_auto_clocked_out: bool = False,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_corrections
                SET status=%s, reviewed_by=%s, reviewed_at=%s
                WHERE correction_id=%s AND status=%s
                """,
                (
                    CorrectionStatus.APPROVED.value,
                    int(reviewed_by),
                    reviewed_at,
                    int(correction_id),
                    CorrectionStatus.PENDING.value,
                ),
            )
            if not matched(cur):
                return False

            cur.execute(
                """
                UPDATE attendance a
                JOIN attendance_corrections c ON c.attendance_id = a.attendance_id
                SET a.check_in_time=%s, a.check_out_time=%s, a.working_hours=%s, a.status=%s,
                    a.is_auto_clocked_out=%s, a.is_manual=1, a.edited_by=%s
                WHERE c.correction_id=%s
                """,
                (
                    check_in_time,
                    check_out_time,
                    working_hours,
                    status.value,
                    int(bool(is_auto_clocked_out)),
                    int(reviewed_by),
                    int(correction_id),
                ),
            )
            return True

    def reject(
        self,
        *,
        correction_id: int,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_corrections
                SET status=%s, reviewed_by=%s, reviewed_at=%s, rejection_reason=%s
                WHERE correction_id=%s AND status=%s
                """,
                (
                    CorrectionStatus.REJECTED.value,
                    int(reviewed_by),
                    reviewed_at,
                    rejection_reason,
                    int(correction_id),
                    CorrectionStatus.PENDING.value,
                ),
            )
            return matched(cur)
