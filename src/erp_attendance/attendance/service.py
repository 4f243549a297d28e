from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local, parse_clock_value, to_business_time
from ..common.serialization import to_dict
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE
from ..core.enums import AttendanceStatus, ClockAction, ClockMethod, NotificationPriority
from ..core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    DeviceNotRegistered,
    EmployeeNotFound,
    NoClockIn,
    NotFoundError,
    RecordLocked,
    ValidationError,
)
from ..core.permissions import Capability, require
from ..devices.model import BiometricDevice
from ..devices.repository import DeviceRepository
from ..notifications.service import NotificationService
from ..users.model import Identity, User
from ..users.repository import UserRepository
from .model import AttendanceEdit, AttendanceOverviewRow, AttendanceRecord, EmployeeMonth
from .policy import ShiftPolicy
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Clock events, owner edits and attendance read models."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        devices: DeviceRepository,
        notifier: NotificationService,
        *,
        policy: Optional[ShiftPolicy] = None,
        tz_name: str = DEFAULT_BUSINESS_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._devices = devices
        self._notifier = notifier
        self._policy = policy or ShiftPolicy()
        self._tz_name = tz_name

    def _local(self, value: Optional[datetime]) -> datetime:
        if value is None:
            return now_local(self._tz_name)
        return to_business_time(value, self._tz_name)

    # ------------------------------------------------------------------
    # Clock events
    # ------------------------------------------------------------------
    def clock_in(
        self,
        identity: Identity,
        *,
        now: Optional[datetime] = None,
        method: ClockMethod = ClockMethod.MANUAL,
        device_id: Optional[str] = None,
    ) -> AttendanceRecord:
        require(identity.role, Capability.CLOCK)
        device_id = self._device_for_method(method, device_id, identity.company_id)
        return self._clock_in(
            user_id=identity.user_id,
            company_id=identity.company_id,
            at=self._local(now),
            method=method,
            device_id=device_id,
        )

    def clock_out(
        self,
        identity: Identity,
        *,
        now: Optional[datetime] = None,
        method: ClockMethod = ClockMethod.MANUAL,
        device_id: Optional[str] = None,
    ) -> AttendanceRecord:
        require(identity.role, Capability.CLOCK)
        device_id = self._device_for_method(method, device_id, identity.company_id)
        return self._clock_out(user_id=identity.user_id, at=self._local(now), method=method, device_id=device_id)

    def _device_for_method(self, method: ClockMethod, device_id: Optional[str], company_id: int) -> Optional[str]:
        """Biometric clock events must name an active device of the caller's company."""
        if method != ClockMethod.BIOMETRIC:
            return None
        return self._registered_device(device_id, company_id=company_id).device_id

    def _registered_device(self, device_id: Optional[str], *, company_id: Optional[int] = None) -> BiometricDevice:
        device = self._devices.get_by_id(device_id) if device_id else None
        if not device or not device.is_active or (company_id is not None and device.company_id != company_id):
            logger.warning("clock event from unregistered device %r", device_id)
            raise DeviceNotRegistered("Device is not registered or inactive", context={"device_id": device_id})
        return device

    def record_biometric_event(
        self,
        *,
        device_id: str,
        employee_id: int,
        action: str,
        timestamp: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Device-initiated clock event; the device registration is the credential."""
        device = self._registered_device(device_id)

        try:
            clock_action = ClockAction(action)
        except ValueError:
            raise ValidationError("action must be clock_in or clock_out")

        employee = self._users.get_by_id(int(employee_id))
        if not employee or not employee.is_active or not employee.is_employee_of(device.company_id):
            raise EmployeeNotFound("Employee not found for this device", context={"employee_id": employee_id})

        at = self._local(timestamp)
        logger.info("biometric %s for employee %s on device %s at %s", clock_action.value, employee.user_id, device_id, at)
        if clock_action == ClockAction.CLOCK_IN:
            return self._clock_in(
                user_id=employee.user_id,
                company_id=employee.company_id,
                at=at,
                method=ClockMethod.BIOMETRIC,
                device_id=device.device_id,
            )
        return self._clock_out(user_id=employee.user_id, at=at, method=ClockMethod.BIOMETRIC, device_id=device.device_id)

    def _clock_in(
        self,
        *,
        user_id: int,
        company_id: int,
        at: datetime,
        method: ClockMethod,
        device_id: Optional[str],
    ) -> AttendanceRecord:
        work_date = at.date()
        existing = self._attendance.get_for_user_and_date(user_id, work_date)
        self._ensure_can_clock_in(existing)
        self._policy.ensure_clock_in_window(at)

        is_late = self._policy.is_late_check_in(at)
        attendance_id = self._attendance.upsert_clock_in(
            user_id=user_id,
            company_id=company_id,
            work_date=work_date,
            check_in_time=at,
            is_late=is_late,
            method=method,
            device_id=device_id,
        )
        if attendance_id is None:
            # Lost the race (or the batch locked the day in between).
            self._ensure_can_clock_in(self._attendance.get_for_user_and_date(user_id, work_date))
            raise AlreadyClockedIn("Already clocked in today")

        logger.info("user %s clocked in at %s (late=%s, method=%s)", user_id, at, is_late, method.value)
        if is_late:
            self._notifier.notify(
                user_id=user_id,
                company_id=company_id,
                type="attendance_late",
                title="Late check-in",
                message=f"You clocked in at {at:%H:%M}, after the {self._policy.shift_start:%H:%M} shift start.",
                priority=NotificationPriority.MEDIUM,
            )
        return self._reload(attendance_id)

    @staticmethod
    def _ensure_can_clock_in(existing: Optional[AttendanceRecord]) -> None:
        if existing is None:
            return
        if existing.is_processed:
            raise RecordLocked("Attendance for this day is already processed")
        if existing.check_in_time is not None:
            raise AlreadyClockedIn("Already clocked in today", context={"attendance": to_dict(existing)})

    def _clock_out(
        self,
        *,
        user_id: int,
        at: datetime,
        method: ClockMethod,
        device_id: Optional[str],
    ) -> AttendanceRecord:
        record = self._attendance.get_for_user_and_date(user_id, at.date())
        if record is None or record.check_in_time is None:
            raise NoClockIn("No clock-in found for today")
        self._ensure_can_clock_out(record)

        hours, status = self._policy.evaluate(record.check_in_time, at)
        updated = self._attendance.update_clock_out(
            attendance_id=record.attendance_id,
            check_out_time=at,
            working_hours=hours,
            status=status,
            method=method,
            device_id=device_id,
        )
        if not updated:
            self._ensure_can_clock_out(self._reload(record.attendance_id))
            raise AlreadyClockedOut("Already clocked out today")

        logger.info("user %s clocked out at %s (%s h, %s)", user_id, at, hours, status.value)
        return self._reload(record.attendance_id)

    @staticmethod
    def _ensure_can_clock_out(record: AttendanceRecord) -> None:
        # A closed day reports as closed even after the batch has locked it.
        if record.check_out_time is not None:
            raise AlreadyClockedOut("Already clocked out today", context={"attendance": to_dict(record)})
        if record.is_processed:
            raise RecordLocked("Attendance for this day is already processed")

    def _reload(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        return record

    # ------------------------------------------------------------------
    # Owner edits
    # ------------------------------------------------------------------
    def manual_edit(self, identity: Identity, attendance_id: int, edit: AttendanceEdit) -> AttendanceRecord:
        record = self._editable_record(identity, attendance_id)
        return self._apply_edit(identity, record, edit)

    def edit_from_request(self, identity: Identity, attendance_id: int, data: dict) -> AttendanceRecord:
        """PATCH body variant of ``manual_edit``; clock values resolve against the record's own day."""
        record = self._editable_record(identity, attendance_id)
        edit = edit_from_payload(data, on_date=record.work_date, tz_name=self._tz_name)
        return self._apply_edit(identity, record, edit)

    def _editable_record(self, identity: Identity, attendance_id: int) -> AttendanceRecord:
        require(identity.role, Capability.EDIT_ATTENDANCE)
        record = self._attendance.get_by_id(int(attendance_id))
        if record is None or record.company_id != identity.company_id:
            raise NotFoundError("Attendance record not found")
        if record.is_processed:
            raise RecordLocked("Processed attendance can only be changed through a correction")
        return record

    def _apply_edit(self, identity: Identity, record: AttendanceRecord, edit: AttendanceEdit) -> AttendanceRecord:
        check_in = edit.check_in_time if edit.check_in_time is not None else record.check_in_time
        check_out = edit.check_out_time if edit.check_out_time is not None else record.check_out_time
        for label, value in (("check_in_time", check_in), ("check_out_time", check_out)):
            if value is not None and value.date() != record.work_date:
                raise ValidationError(f"{label} must be on {record.work_date.isoformat()}")
        if check_out is not None and check_in is None:
            raise ValidationError("check_out_time requires a check_in_time")

        hours = record.working_hours
        status = record.status
        if check_in is not None and check_out is not None:
            hours, status = self._policy.evaluate(check_in, check_out)
        if edit.status is not None:
            status = edit.status
        notes = edit.notes if edit.notes is not None else record.notes

        updated = self._attendance.manual_update(
            attendance_id=record.attendance_id,
            check_in_time=check_in,
            check_out_time=check_out,
            working_hours=hours,
            status=status,
            notes=notes,
            edited_by=identity.user_id,
            is_auto_clocked_out=record.is_auto_clocked_out and check_out == record.check_out_time,
        )
        if not updated:
            raise RecordLocked("Processed attendance can only be changed through a correction")

        logger.info("attendance %s edited by user %s", record.attendance_id, identity.user_id)
        return self._reload(record.attendance_id)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------
    def get_today(self, identity: Identity, *, today: Optional[date] = None) -> Optional[AttendanceRecord]:
        require(identity.role, Capability.VIEW_OWN_ATTENDANCE)
        return self._attendance.get_for_user_and_date(identity.user_id, today or now_local(self._tz_name).date())

    def get_history(self, identity: Identity, *, year: int, month: int) -> Sequence[AttendanceRecord]:
        require(identity.role, Capability.VIEW_OWN_ATTENDANCE)
        start, end = month_bounds(year, month)
        return self._attendance.list_for_user_between(identity.user_id, start, end)

    def get_overview(self, identity: Identity, *, work_date: Optional[date] = None) -> Sequence[AttendanceOverviewRow]:
        require(identity.role, Capability.VIEW_COMPANY_ATTENDANCE)
        return self._attendance.list_overview_for_date(
            company_id=identity.company_id,
            work_date=work_date or now_local(self._tz_name).date(),
        )

    def get_employee_month(self, identity: Identity, employee_id: int, *, year: int, month: int) -> EmployeeMonth:
        require(identity.role, Capability.VIEW_COMPANY_ATTENDANCE)
        employee = self._company_employee(identity, int(employee_id))
        start, end = month_bounds(year, month)
        records = tuple(self._attendance.list_for_user_between(employee.user_id, start, end))
        summary = self._attendance.summarize_month(employee.user_id, year=year, month=month, locked_only=False)
        return EmployeeMonth(
            user_id=employee.user_id,
            full_name=employee.full_name,
            email=employee.email,
            year=int(year),
            month=int(month),
            records=records,
            summary=summary,
        )

    def _company_employee(self, identity: Identity, employee_id: int) -> User:
        employee = self._users.get_by_id(employee_id)
        if not employee or not employee.is_employee_of(identity.company_id):
            raise EmployeeNotFound("Employee not found", context={"employee_id": employee_id})
        return employee


def edit_from_payload(data: dict, *, on_date: date, tz_name: str = DEFAULT_BUSINESS_TIMEZONE) -> AttendanceEdit:
    """Build an ``AttendanceEdit`` from a PATCH body; unknown keys are ignored."""
    check_in = data.get("check_in_time")
    check_out = data.get("check_out_time")
    status = data.get("status")
    if status is not None:
        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError("status must be one of present, half_day, absent")
        if status == AttendanceStatus.UNSET:
            raise ValidationError("status must be one of present, half_day, absent")

    edit = AttendanceEdit(
        check_in_time=parse_clock_value(check_in, on_date=on_date, tz_name=tz_name) if check_in else None,
        check_out_time=parse_clock_value(check_out, on_date=on_date, tz_name=tz_name) if check_out else None,
        status=status,
        notes=data.get("notes"),
    )
    if edit == AttendanceEdit():
        raise ValidationError("Nothing to update")
    return edit



def clock_method_from_payload(data: dict) -> tuple[ClockMethod, Optional[str]]:
    """Read the optional ``{method, biometric_device_id}`` body of a clock-in/out."""
    raw = data.get("method") or ClockMethod.MANUAL.value
    try:
        method = ClockMethod(str(raw).strip().lower())
    except ValueError:
        raise ValidationError("method must be manual or biometric")
    device_id = data.get("biometric_device_id")
    if method == ClockMethod.BIOMETRIC:
        device_id = require_non_empty(device_id, "biometric_device_id")
    return method, device_id
