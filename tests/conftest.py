from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from erp_attendance import create_app
from erp_attendance.attendance.model import AttendanceOverviewRow, AttendanceRecord, MonthlyAttendanceSummary
from erp_attendance.attendance.policy import ShiftPolicy
from erp_attendance.attendance.service import AttendanceService
from erp_attendance.common.datetime_utils import month_bounds
from erp_attendance.config import load_settings
from erp_attendance.container import wire_container
from erp_attendance.core.enums import AttendanceStatus, CorrectionStatus, Role
from erp_attendance.core.exceptions import DuplicatePayroll
from erp_attendance.corrections.model import AttendanceCorrection, CorrectionListItem
from erp_attendance.corrections.service import CorrectionService
from erp_attendance.devices.model import BiometricDevice
from erp_attendance.notifications.model import Notification
from erp_attendance.notifications.service import NotificationService
from erp_attendance.payroll.service import PayrollService
from erp_attendance.processing.daily import DailyAttendanceProcessor
from erp_attendance.users.model import Identity, User

TESTING_SETTINGS = "erp_attendance.config.testing"
PASSWORD = "secret123"


def identity_of(user: User) -> Identity:
    return user.identity()


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------
class InMemoryUsers:
    def __init__(self, users: list[User]):
        self.users_by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(int(user_id))

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        for u in self.users_by_id.values():
            if u.email == email and (role is None or u.role == role):
                return u
        return None

    def list_by_role(self, *, company_id: int, role: Role, active_only: bool = True):
        items = [
            u
            for u in self.users_by_id.values()
            if u.company_id == company_id and u.role == role and (u.is_active or not active_only)
        ]
        return sorted(items, key=lambda u: u.full_name)

    def active_employees(self, company_id: Optional[int] = None):
        return [
            u
            for u in sorted(self.users_by_id.values(), key=lambda u: u.user_id)
            if u.role == Role.EMPLOYEE and u.is_active and (company_id is None or u.company_id == company_id)
        ]


class InMemoryAttendance:
    """Mirrors the guarded writes of the MySQL repository under one lock."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self._lock = threading.Lock()
        self._records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    # helpers for tests
    def seed(self, **fields) -> AttendanceRecord:
        with self._lock:
            fields.setdefault("check_in_time", None)
            fields.setdefault("check_out_time", None)
            fields.setdefault("working_hours", None)
            fields.setdefault("status", AttendanceStatus.UNSET)
            record = AttendanceRecord(attendance_id=self._next_id, **fields)
            self._records[record.attendance_id] = record
            self._next_id += 1
            return record

    def force_update(self, attendance_id: int, **changes) -> None:
        with self._lock:
            self._records[attendance_id] = replace(self._records[attendance_id], **changes)

    def all(self) -> list[AttendanceRecord]:
        return sorted(self._records.values(), key=lambda r: r.attendance_id)

    def _find(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        for r in self._records.values():
            if r.user_id == user_id and r.work_date == work_date:
                return r
        return None

    # AttendanceRepository
    def get_by_id(self, attendance_id: int):
        return self._records.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date):
        return self._find(int(user_id), work_date)

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date):
        items = [r for r in self._records.values() if r.user_id == user_id and start_date <= r.work_date < end_date]
        return sorted(items, key=lambda r: r.work_date)

    def list_overview_for_date(self, *, company_id: int, work_date: date):
        return [
            AttendanceOverviewRow(user_id=u.user_id, full_name=u.full_name, email=u.email, record=self._find(u.user_id, work_date))
            for u in sorted(self._users.active_employees(company_id), key=lambda u: u.full_name)
        ]

    def upsert_clock_in(self, *, user_id, company_id, work_date, check_in_time, is_late, method, device_id=None):
        with self._lock:
            existing = self._find(user_id, work_date)
            if existing is None:
                record = AttendanceRecord(
                    attendance_id=self._next_id,
                    user_id=user_id,
                    company_id=company_id,
                    work_date=work_date,
                    check_in_time=check_in_time,
                    check_out_time=None,
                    working_hours=None,
                    status=AttendanceStatus.UNSET,
                    is_late=is_late,
                    clock_in_method=method,
                    biometric_device_id=device_id,
                )
                self._records[record.attendance_id] = record
                self._next_id += 1
                return record.attendance_id
            if existing.check_in_time is not None or existing.is_processed:
                return None
            self._records[existing.attendance_id] = replace(
                existing,
                check_in_time=check_in_time,
                is_late=is_late,
                clock_in_method=method,
                biometric_device_id=device_id,
            )
            return existing.attendance_id

    def update_clock_out(self, *, attendance_id, check_out_time, working_hours, status, method, device_id=None):
        with self._lock:
            r = self._records.get(attendance_id)
            if not r or r.check_in_time is None or r.check_out_time is not None or r.is_processed:
                return False
            self._records[attendance_id] = replace(
                r,
                check_out_time=check_out_time,
                working_hours=working_hours,
                status=status,
                clock_out_method=method,
                biometric_device_id=device_id or r.biometric_device_id,
            )
            return True

    def manual_update(
        self,
        *,
        attendance_id,
        check_in_time,
        check_out_time,
        working_hours,
        status,
        notes,
        edited_by,
        is_auto_clocked_out=False,
    ):
        with self._lock:
            r = self._records.get(attendance_id)
            if not r or r.is_processed:
                return False
            self._records[attendance_id] = replace(
                r,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
                working_hours=working_hours,
                status=status,
                notes=notes,
                is_manual=True,
                edited_by=edited_by,
                is_auto_clocked_out=is_auto_clocked_out,
            )
            return True

    def list_open_for_date(self, work_date, *, company_id=None):
        return [
            r
            for r in self.all()
            if r.work_date == work_date
            and r.check_in_time is not None
            and r.check_out_time is None
            and not r.is_processed
            and (company_id is None or r.company_id == company_id)
        ]

    def auto_clock_out(self, *, attendance_id, check_out_time, working_hours, status):
        with self._lock:
            r = self._records.get(attendance_id)
            if not r or r.check_out_time is not None or r.is_processed:
                return False
            self._records[attendance_id] = replace(
                r,
                check_out_time=check_out_time,
                working_hours=working_hours,
                status=status,
                is_auto_clocked_out=True,
            )
            return True

    def absentees_for_date(self, work_date, *, company_id=None):
        return [
            (u.user_id, u.company_id)
            for u in self._users.active_employees(company_id)
            if self._find(u.user_id, work_date) is None
        ]

    def create_absent(self, *, user_id, company_id, work_date):
        with self._lock:
            if self._find(user_id, work_date) is not None:
                return False
            record = AttendanceRecord(
                attendance_id=self._next_id,
                user_id=user_id,
                company_id=company_id,
                work_date=work_date,
                check_in_time=None,
                check_out_time=None,
                working_hours=None,
                status=AttendanceStatus.ABSENT,
            )
            self._records[record.attendance_id] = record
            self._next_id += 1
            return True

    def lock_records_for_date(self, work_date, *, processed_at, company_id=None):
        with self._lock:
            count = 0
            for r in list(self._records.values()):
                if r.work_date == work_date and not r.is_processed and (company_id is None or r.company_id == company_id):
                    self._records[r.attendance_id] = replace(r, is_processed=True, processed_at=processed_at)
                    count += 1
            return count

    def summarize_month(self, user_id, *, year, month, locked_only=True):
        start, end = month_bounds(year, month)
        rows = [
            r
            for r in self._records.values()
            if r.user_id == user_id and start <= r.work_date < end and (r.is_processed or not locked_only)
        ]
        return MonthlyAttendanceSummary(
            present_days=sum(1 for r in rows if r.status == AttendanceStatus.PRESENT),
            absent_days=sum(1 for r in rows if r.status == AttendanceStatus.ABSENT),
            half_days=sum(1 for r in rows if r.status == AttendanceStatus.HALF_DAY),
            total_hours=sum((r.working_hours or Decimal("0") for r in rows), Decimal("0")).quantize(Decimal("0.01")),
        )


class InMemoryDevices:
    def __init__(self, devices: list[BiometricDevice]):
        self._devices = {d.device_id: d for d in devices}

    def get_by_id(self, device_id: str):
        return self._devices.get(device_id)


class InMemoryCorrections:
    def __init__(self, attendance: InMemoryAttendance, users: InMemoryUsers):
        self._attendance = attendance
        self._users = users
        self._lock = threading.Lock()
        self._items: dict[int, AttendanceCorrection] = {}
        self._next_id = 1

    def create(self, *, attendance_id, user_id, requested_check_in, requested_check_out, reason):
        with self._lock:
            cid = self._next_id
            self._next_id += 1
            self._items[cid] = AttendanceCorrection(
                correction_id=cid,
                attendance_id=attendance_id,
                user_id=user_id,
                requested_check_in=requested_check_in,
                requested_check_out=requested_check_out,
                reason=reason,
                status=CorrectionStatus.PENDING,
                created_at=datetime(2024, 5, 2, 10, 0),
            )
            return cid

    def get_by_id(self, correction_id):
        return self._items.get(int(correction_id))

    def has_pending(self, *, attendance_id, user_id):
        return any(
            c.attendance_id == attendance_id and c.user_id == user_id and c.status == CorrectionStatus.PENDING
            for c in self._items.values()
        )

    def list_corrections(self, *, company_id=None, user_id=None, status=None, limit=200):
        out = []
        for c in sorted(self._items.values(), key=lambda c: c.correction_id, reverse=True):
            record = self._attendance.get_by_id(c.attendance_id)
            user = self._users.get_by_id(c.user_id)
            if company_id is not None and record.company_id != company_id:
                continue
            if user_id is not None and c.user_id != user_id:
                continue
            if status is not None and c.status != status:
                continue
            out.append(
                CorrectionListItem(
                    correction_id=c.correction_id,
                    attendance_id=c.attendance_id,
                    user_id=c.user_id,
                    full_name=user.full_name,
                    email=user.email,
                    work_date=record.work_date,
                    requested_check_in=c.requested_check_in,
                    requested_check_out=c.requested_check_out,
                    reason=c.reason,
                    status=c.status,
                    created_at=c.created_at,
                    reviewed_by=c.reviewed_by,
                    reviewed_at=c.reviewed_at,
                    rejection_reason=c.rejection_reason,
                )
            )
        return out[:limit]

    def approve(
        self,
        *,
        correction_id,
        reviewed_by,
        reviewed_at,
        check_in_time,
        check_out_time,
        working_hours,
        status,
        is_auto_clocked_out=False,
    ):
        with self._lock:
            c = self._items.get(correction_id)
            if not c or c.status != CorrectionStatus.PENDING:
                return False
            self._items[correction_id] = replace(
                c, status=CorrectionStatus.APPROVED, reviewed_by=reviewed_by, reviewed_at=reviewed_at
            )
        # Correction approval ignores the processed lock.
        self._attendance.force_update(
            c.attendance_id,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            working_hours=working_hours,
            status=status,
            is_auto_clocked_out=is_auto_clocked_out,
            is_manual=True,
            edited_by=reviewed_by,
        )
        return True

    def reject(self, *, correction_id, reviewed_by, reviewed_at, rejection_reason):
        with self._lock:
            c = self._items.get(correction_id)
            if not c or c.status != CorrectionStatus.PENDING:
                return False
            self._items[correction_id] = replace(
                c,
                status=CorrectionStatus.REJECTED,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
                rejection_reason=rejection_reason,
            )
            return True


class InMemoryPayroll:
    def __init__(self):
        self._lock = threading.Lock()
        self._items = {}
        self._next_id = 1

    def get_for_period(self, *, employee_id, month, year):
        for p in self._items.values():
            if (p.employee_id, p.payroll_month, p.payroll_year) == (employee_id, month, year):
                return p
        return None

    def get_by_id(self, payroll_id):
        return self._items.get(int(payroll_id))

    def create(self, record):
        with self._lock:
            if self.get_for_period(employee_id=record.employee_id, month=record.payroll_month, year=record.payroll_year):
                raise DuplicatePayroll("Payroll already exists for this employee and period")
            pid = self._next_id
            self._next_id += 1
            self._items[pid] = replace(record, payroll_id=pid, created_at=datetime(2024, 6, 1, 9, 0))
            return pid

    def list_payroll(self, *, company_id, employee_id=None, month=None, year=None, employee_email=None, limit=200):
        return [
            p
            for p in self._items.values()
            if p.company_id == company_id
            and (employee_id is None or p.employee_id == employee_id)
            and (month is None or p.payroll_month == month)
            and (year is None or p.payroll_year == year)
            and (employee_email is None or p.employee_email == employee_email)
        ][:limit]


class InMemoryNotifications:
    def __init__(self):
        self.items: list[Notification] = []
        self.fail = False

    def create(self, *, user_id, company_id, type, title, message, priority):
        if self.fail:
            raise RuntimeError("notification store down")
        n = Notification(
            notification_id=len(self.items) + 1,
            user_id=user_id,
            company_id=company_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            created_at=datetime(2024, 5, 1, 9, 0),
            is_read=False,
        )
        self.items.append(n)
        return n.notification_id

    def list_for_user(self, *, user_id, unread_only=False, limit=50):
        return [n for n in reversed(self.items) if n.user_id == user_id and (not unread_only or not n.is_read)][:limit]

    def for_user(self, user_id: int) -> list[Notification]:
        return [n for n in self.items if n.user_id == user_id]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def password_hash() -> str:
    return generate_password_hash(PASSWORD)


@pytest.fixture
def users(password_hash) -> InMemoryUsers:
    return InMemoryUsers(
        [
            User(1, 1, "Olivia Owner", "owner@acme.test", password_hash, Role.OWNER),
            User(2, 1, "Asha Employee", "asha@acme.test", password_hash, Role.EMPLOYEE),
            User(3, 1, "Ravi Employee", "ravi@acme.test", password_hash, Role.EMPLOYEE),
            User(4, 1, "Adam Admin", "admin@acme.test", password_hash, Role.ADMIN),
            User(5, 2, "Other Employee", "emp@other.test", password_hash, Role.EMPLOYEE),
            User(6, 2, "Other Owner", "owner@other.test", password_hash, Role.OWNER),
            User(7, 1, "Gone Employee", "gone@acme.test", password_hash, Role.EMPLOYEE, is_active=False),
        ]
    )


@pytest.fixture
def owner(users) -> Identity:
    return identity_of(users.get_by_id(1))


@pytest.fixture
def employee(users) -> Identity:
    return identity_of(users.get_by_id(2))


@pytest.fixture
def coworker(users) -> Identity:
    return identity_of(users.get_by_id(3))


@pytest.fixture
def other_owner(users) -> Identity:
    return identity_of(users.get_by_id(6))


@pytest.fixture
def attendance(users) -> InMemoryAttendance:
    return InMemoryAttendance(users)


@pytest.fixture
def devices() -> InMemoryDevices:
    return InMemoryDevices(
        [
            BiometricDevice("DEV-1", 1, "Front door"),
            BiometricDevice("DEV-OFF", 1, "Old reader", is_active=False),
            BiometricDevice("DEV-2", 2, "Other office"),
        ]
    )


@pytest.fixture
def corrections(attendance, users) -> InMemoryCorrections:
    return InMemoryCorrections(attendance, users)


@pytest.fixture
def payroll_repo() -> InMemoryPayroll:
    return InMemoryPayroll()


@pytest.fixture
def notifications() -> InMemoryNotifications:
    return InMemoryNotifications()


@pytest.fixture
def notifier(notifications) -> NotificationService:
    return NotificationService(notifications)


@pytest.fixture
def policy() -> ShiftPolicy:
    return ShiftPolicy()


@pytest.fixture
def attendance_service(attendance, users, devices, notifier, policy) -> AttendanceService:
    return AttendanceService(attendance, users, devices, notifier, policy=policy)


@pytest.fixture
def correction_service(corrections, attendance, notifier, policy) -> CorrectionService:
    return CorrectionService(corrections, attendance, notifier, policy=policy)


@pytest.fixture
def payroll_service(payroll_repo, attendance, users, notifier) -> PayrollService:
    return PayrollService(payroll_repo, attendance, users, notifier)


@pytest.fixture
def processor(attendance, policy) -> DailyAttendanceProcessor:
    return DailyAttendanceProcessor(attendance, policy=policy)


@pytest.fixture
def container(users, attendance, devices, corrections, payroll_repo, notifications):
    return wire_container(
        settings=load_settings(TESTING_SETTINGS),
        users_repo=users,
        attendance_repo=attendance,
        devices_repo=devices,
        corrections_repo=corrections,
        payroll_repo=payroll_repo,
        notifications_repo=notifications,
    )


@pytest.fixture
def app(container):
    return create_app(TESTING_SETTINGS, container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client):
    def _login(identity: Identity):
        with client.session_transaction() as sess:
            sess["user_id"] = identity.user_id
            sess["role"] = identity.role.value
            sess["company_id"] = identity.company_id
        return client

    return _login
