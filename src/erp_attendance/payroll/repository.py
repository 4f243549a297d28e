from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollRecord


class PayrollRepository(Protocol):
    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def create(self, record: PayrollRecord) -> int:
        """Insert ``record`` (its payroll_id is ignored) and return the new id.

        Raises DuplicatePayroll when the (employee, month, year) key is taken.
        """

        raise NotImplementedError

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

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
        raise NotImplementedError
