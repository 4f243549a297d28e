from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ...attendance.model import MonthlyAttendanceSummary
from ...core.constants import DEFAULT_PAYROLL_WORKING_DAYS, HALF_DAY_CREDIT
from ..model import PayrollAmounts
from .base import PayrollCalculator

_CENTS = Decimal("0.01")


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: base / working_days per payable day, plus adjustments.

    payable = present + 0.5 * half_days; absent days earn nothing.
    """

    def __init__(self, working_days: int = DEFAULT_PAYROLL_WORKING_DAYS):
        if int(working_days) <= 0:
            raise ValueError("working_days must be positive")
        self._working_days = Decimal(int(working_days))

    def payable_days(self, summary: MonthlyAttendanceSummary) -> Decimal:
        return Decimal(summary.present_days) + Decimal(HALF_DAY_CREDIT) * Decimal(summary.half_days)

    def calculate(
        self,
        *,
        base_salary: Decimal,
        summary: MonthlyAttendanceSummary,
        extra_amount: Decimal,
        salary_increment: Decimal,
        deduction: Decimal,
    ) -> PayrollAmounts:
        payable = self.payable_days(summary)
        adjusted = (base_salary / self._working_days * payable).quantize(_CENTS, rounding=ROUND_HALF_UP)
        total = (adjusted + extra_amount + salary_increment - deduction).quantize(_CENTS, rounding=ROUND_HALF_UP)
        return PayrollAmounts(payable_days=payable, adjusted_salary=adjusted, total_salary=total)
