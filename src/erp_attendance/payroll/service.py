from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.validators import require_amount, require_int, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import NotificationPriority, Role
from ..core.exceptions import AuthorizationError, DuplicatePayroll, EmployeeNotFound, NotFoundError
from ..core.permissions import Capability, can, require
from ..notifications.service import NotificationService
from ..users.model import Identity, User
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import NewPayroll, PayrollRecord
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


def _period_field(data: dict, field_name: str, alias: str):
    value = data.get(field_name)
    return data.get(alias) if value is None else value


def new_payroll_from_payload(data: dict) -> NewPayroll:
    """Validate a create-payroll body into a ``NewPayroll``.

    The period is read from ``payroll_month``/``payroll_year``; the short
    ``month``/``year`` keys are still accepted for older clients.
    """
    remarks = (data.get("remarks") or "").strip() or None
    month = _period_field(data, "payroll_month", "month")
    year = _period_field(data, "payroll_year", "year")
    return NewPayroll(
        employee_email=require_non_empty(data.get("employee_email"), "employee_email").lower(),
        month=require_int(month, "payroll_month", min_value=1, max_value=12),
        year=require_int(year, "payroll_year", min_value=2000, max_value=2100),
        base_salary=require_amount(data.get("base_salary"), "base_salary", positive=True),
        extra_amount=require_amount(data.get("extra_amount"), "extra_amount", default="0"),
        salary_increment=require_amount(data.get("salary_increment"), "salary_increment", default="0"),
        deduction=require_amount(data.get("deduction"), "deduction", default="0"),
        remarks=remarks,
    )


class PayrollService:
    def __init__(
        self,
        payroll: PayrollRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        notifier: NotificationService,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._attendance = attendance
        self._users = users
        self._notifier = notifier
        self._calculator = calculator or StandardPayrollCalculator()

    def create_payroll(self, identity: Identity, request: NewPayroll) -> PayrollRecord:
        require(identity.role, Capability.MANAGE_PAYROLL)

        employee = self._users.get_by_email(request.employee_email.strip().lower(), role=Role.EMPLOYEE)
        if employee is None or not employee.is_employee_of(identity.company_id):
            raise EmployeeNotFound("Employee not found", context={"employee_email": request.employee_email})

        if self._payroll.get_for_period(employee_id=employee.user_id, month=request.month, year=request.year):
            raise DuplicatePayroll(
                "Payroll already exists for this employee and period",
                context={"month": request.month, "year": request.year},
            )

        # Only days locked by the daily batch count towards pay.
        summary = self._attendance.summarize_month(employee.user_id, year=request.year, month=request.month, locked_only=True)
        amounts = self._calculator.calculate(
            base_salary=request.base_salary,
            summary=summary,
            extra_amount=request.extra_amount,
            salary_increment=request.salary_increment,
            deduction=request.deduction,
        )

        payroll_id = self._payroll.create(
            PayrollRecord(
                payroll_id=0,
                company_id=employee.company_id,
                employee_id=employee.user_id,
                employee_email=employee.email,
                employee_name=employee.full_name,
                payroll_month=request.month,
                payroll_year=request.year,
                base_salary=request.base_salary,
                extra_amount=request.extra_amount,
                salary_increment=request.salary_increment,
                deduction=request.deduction,
                present_days=summary.present_days,
                absent_days=summary.absent_days,
                half_days=summary.half_days,
                payable_days=amounts.payable_days,
                total_working_hours=summary.total_hours,
                total_salary=amounts.total_salary,
                remarks=request.remarks,
                created_by=identity.user_id,
            )
        )
        record = self._payroll.get_by_id(payroll_id)
        if record is None:
            raise NotFoundError("Payroll record not found")

        logger.info(
            "payroll %s created for employee %s (%02d/%s): payable_days=%s total=%s",
            payroll_id,
            employee.user_id,
            request.month,
            request.year,
            amounts.payable_days,
            amounts.total_salary,
        )
        self._notifier.notify(
            user_id=employee.user_id,
            company_id=employee.company_id,
            type="payroll",
            title="Payroll generated",
            message=f"Your payroll for {request.month:02d}/{request.year} is ready: {amounts.total_salary}.",
            priority=NotificationPriority.HIGH,
        )
        return record

    def list_payroll(
        self,
        identity: Identity,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_email: Optional[str] = None,
    ) -> Sequence[PayrollRecord]:
        email = (employee_email or "").strip().lower() or None
        if can(identity.role, Capability.VIEW_COMPANY_PAYROLL):
            return self._payroll.list_payroll(
                company_id=identity.company_id,
                month=month,
                year=year,
                employee_email=email,
                limit=DEFAULT_LIST_LIMIT,
            )
        if can(identity.role, Capability.VIEW_OWN_PAYROLL):
            # Employees only ever see their own rows; the email filter is ignored.
            return self._payroll.list_payroll(
                company_id=identity.company_id,
                employee_id=identity.user_id,
                month=month,
                year=year,
                limit=DEFAULT_LIST_LIMIT,
            )
        raise AuthorizationError("You are not allowed to perform this action")

    def list_payable_employees(self, identity: Identity) -> Sequence[User]:
        require(identity.role, Capability.MANAGE_PAYROLL)
        return self._users.list_by_role(company_id=identity.company_id, role=Role.EMPLOYEE)
