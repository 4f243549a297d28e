from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import ShiftPolicy
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_BATCH_MAX_SECONDS, DEFAULT_BUSINESS_TIMEZONE, DEFAULT_PAYROLL_WORKING_DAYS
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.repository import CorrectionRepository
from .corrections.service import CorrectionService
from .database.connection import DatabaseConnection
from .devices.mysql_device_repository import MySQLDeviceRepository
from .devices.repository import DeviceRepository
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .processing.daily import DailyAttendanceProcessor
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    settings: Any
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    devices_repo: DeviceRepository
    corrections_repo: CorrectionRepository
    payroll_repo: PayrollRepository
    notifications_repo: NotificationRepository

    auth_service: AuthService
    notification_service: NotificationService
    attendance_service: AttendanceService
    correction_service: CorrectionService
    payroll_service: PayrollService
    daily_processor: DailyAttendanceProcessor


def wire_container(
    *,
    settings: Any,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    devices_repo: DeviceRepository,
    corrections_repo: CorrectionRepository,
    payroll_repo: PayrollRepository,
    notifications_repo: NotificationRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services on top of the given repositories."""
    policy = ShiftPolicy.from_settings(settings)
    tz_name = getattr(settings, "BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE)

    notification_service = NotificationService(notifications_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        devices_repo,
        notification_service,
        policy=policy,
        tz_name=tz_name,
    )
    correction_service = CorrectionService(
        corrections_repo,
        attendance_repo,
        notification_service,
        policy=policy,
        tz_name=tz_name,
    )
    payroll_service = PayrollService(
        payroll_repo,
        attendance_repo,
        users_repo,
        notification_service,
        calculator=StandardPayrollCalculator(
            working_days=int(getattr(settings, "PAYROLL_WORKING_DAYS", DEFAULT_PAYROLL_WORKING_DAYS))
        ),
    )
    daily_processor = DailyAttendanceProcessor(
        attendance_repo,
        policy=policy,
        tz_name=tz_name,
        max_seconds=float(getattr(settings, "BATCH_MAX_SECONDS", DEFAULT_BATCH_MAX_SECONDS)),
    )

    return Container(
        settings=settings,
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        devices_repo=devices_repo,
        corrections_repo=corrections_repo,
        payroll_repo=payroll_repo,
        notifications_repo=notifications_repo,
        auth_service=AuthService(users_repo),
        notification_service=notification_service,
        attendance_service=attendance_service,
        correction_service=correction_service,
        payroll_service=payroll_service,
        daily_processor=daily_processor,
    )


def build_container(*, db_config: dict, settings: Any) -> Container:
    conn = DatabaseConnection.from_dict(db_config)
    return wire_container(
        settings=settings,
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        devices_repo=MySQLDeviceRepository(conn),
        corrections_repo=MySQLCorrectionRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
    )
