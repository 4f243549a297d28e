from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PayrollAmounts:
    """Calculator output for one employee-month."""

    payable_days: Decimal
    adjusted_salary: Decimal
    total_salary: Decimal


@dataclass(frozen=True)
class PayrollRecord:
    """Point-in-time payroll snapshot; later attendance corrections do not change it."""

    payroll_id: int
    company_id: int
    employee_id: int
    employee_email: str
    employee_name: str
    payroll_month: int
    payroll_year: int
    base_salary: Decimal
    extra_amount: Decimal
    salary_increment: Decimal
    deduction: Decimal
    present_days: int
    absent_days: int
    half_days: int
    payable_days: Decimal
    total_working_hours: Decimal
    total_salary: Decimal
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewPayroll:
    employee_email: str
    month: int
    year: int
    base_salary: Decimal
    extra_amount: Decimal = Decimal("0.00")
    salary_increment: Decimal = Decimal("0.00")
    deduction: Decimal = Decimal("0.00")
    remarks: Optional[str] = None
