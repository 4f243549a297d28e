from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...attendance.model import MonthlyAttendanceSummary
from ..model import PayrollAmounts


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        *,
        base_salary: Decimal,
        summary: MonthlyAttendanceSummary,
        extra_amount: Decimal,
        salary_increment: Decimal,
        deduction: Decimal,
    ) -> PayrollAmounts:
        raise NotImplementedError
