from __future__ import annotations

from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.exceptions import DuplicatePayroll
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, money
from .model import PayrollRecord
from .repository import PayrollRepository

_PAYROLL_COLUMNS = """
    payroll_id, company_id, employee_id, employee_email, employee_name, payroll_month, payroll_year,
    base_salary, extra_amount, salary_increment, deduction, present_days, absent_days, half_days,
    payable_days, total_working_hours, total_salary, remarks, created_by, created_at
"""


def _row_to_payroll(r: dict) -> PayrollRecord:
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        company_id=int(r["company_id"]),
        employee_id=int(r["employee_id"]),
        employee_email=r["employee_email"],
        employee_name=r["employee_name"],
        payroll_month=int(r["payroll_month"]),
        payroll_year=int(r["payroll_year"]),
        base_salary=money(r["base_salary"]),
        extra_amount=money(r["extra_amount"]),
        salary_increment=money(r["salary_increment"]),
        deduction=money(r["deduction"]),
        present_days=int(r["present_days"]),
        absent_days=int(r["absent_days"]),
        half_days=int(r["half_days"]),
        payable_days=r["payable_days"],
        total_working_hours=money(r["total_working_hours"]),
        total_salary=money(r["total_salary"]),
        remarks=r.get("remarks"),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PAYROLL_COLUMNS} FROM payroll
                WHERE employee_id=%s AND payroll_month=%s AND payroll_year=%s
                """,
                (int(employee_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_payroll(r) if r else None

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYROLL_COLUMNS} FROM payroll WHERE payroll_id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _row_to_payroll(r) if r else None

    def create(self, record: PayrollRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll(
                        company_id, employee_id, employee_email, employee_name, payroll_month, payroll_year,
                        base_salary, extra_amount, salary_increment, deduction,
                        present_days, absent_days, half_days, payable_days, total_working_hours,
                        total_salary, remarks, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.company_id,
                        record.employee_id,
                        record.employee_email,
                        record.employee_name,
                        record.payroll_month,
                        record.payroll_year,
                        record.base_salary,
                        record.extra_amount,
                        record.salary_increment,
                        record.deduction,
                        record.present_days,
                        record.absent_days,
                        record.half_days,
                        record.payable_days,
                        record.total_working_hours,
                        record.total_salary,
                        record.remarks,
                        record.created_by,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicatePayroll("Payroll already exists for this employee and period")
            raise

    def list_payroll(
        self,
        *,
        company_id: int,
        employee_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_email: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[PayrollRecord]:
        sql = f"SELECT {_PAYROLL_COLUMNS} FROM payroll WHERE company_id=%s"
        params: list[object] = [int(company_id)]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(int(employee_id))
        if month is not None:
            sql += " AND payroll_month=%s"
            params.append(int(month))
        if year is not None:
            sql += " AND payroll_year=%s"
            params.append(int(year))
        if employee_email:
            sql += " AND employee_email=%s"
            params.append(employee_email)
        sql += " ORDER BY payroll_year DESC, payroll_month DESC, employee_name ASC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_payroll(r) for r in fetchall(cur)]
