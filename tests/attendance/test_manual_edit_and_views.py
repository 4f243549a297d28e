from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from erp_attendance.attendance.model import AttendanceEdit
from erp_attendance.attendance.service import edit_from_payload
from erp_attendance.core.enums import AttendanceStatus
from erp_attendance.core.exceptions import AuthorizationError, EmployeeNotFound, NotFoundError, RecordLocked, ValidationError

DAY = date(2024, 5, 1)


def at(hh: int, mm: int = 0) -> datetime:
    return datetime(2024, 5, 1, hh, mm)


@pytest.fixture
def open_record(attendance, employee):
    return attendance.seed(user_id=employee.user_id, company_id=employee.company_id, work_date=DAY, check_in_time=at(9, 30), is_late=True)


def test_manual_edit_recomputes_hours_and_marks_manual(attendance_service, owner, open_record):
    edited = attendance_service.manual_edit(owner, open_record.attendance_id, AttendanceEdit(check_out_time=at(19, 30)))
    assert edited.working_hours == Decimal("10.00")
    assert edited.status == AttendanceStatus.PRESENT
    assert edited.is_manual is True
    assert edited.edited_by == owner.user_id


def test_manual_status_override_wins(attendance_service, owner, open_record):
    edited = attendance_service.manual_edit(
        owner,
        open_record.attendance_id,
        AttendanceEdit(check_out_time=at(19, 30), status=AttendanceStatus.HALF_DAY, notes="left for errands"),
    )
    assert edited.status == AttendanceStatus.HALF_DAY
    assert edited.notes == "left for errands"


def test_manual_edit_clears_auto_clock_out_when_check_out_changes(attendance_service, attendance, owner, employee):
    record = attendance.seed(
        user_id=employee.user_id,
        company_id=employee.company_id,
        work_date=DAY,
        check_in_time=at(9),
        check_out_time=at(19),
        working_hours=Decimal("10.00"),
        status=AttendanceStatus.PRESENT,
        is_auto_clocked_out=True,
    )
    kept = attendance_service.manual_edit(owner, record.attendance_id, AttendanceEdit(notes="checked"))
    assert kept.is_auto_clocked_out is True

    changed = attendance_service.manual_edit(owner, record.attendance_id, AttendanceEdit(check_out_time=at(18)))
    assert changed.is_auto_clocked_out is False
    assert changed.status == AttendanceStatus.HALF_DAY


def test_manual_edit_on_processed_record_is_locked(attendance_service, attendance, owner, open_record):
    attendance.force_update(open_record.attendance_id, is_processed=True)
    with pytest.raises(RecordLocked):
        attendance_service.manual_edit(owner, open_record.attendance_id, AttendanceEdit(check_out_time=at(19)))
    assert attendance.get_by_id(open_record.attendance_id).check_out_time is None


def test_manual_edit_rules(attendance_service, owner, other_owner, employee, open_record):
    with pytest.raises(AuthorizationError):
        attendance_service.manual_edit(employee, open_record.attendance_id, AttendanceEdit(notes="x"))
    with pytest.raises(NotFoundError):
        attendance_service.manual_edit(other_owner, open_record.attendance_id, AttendanceEdit(notes="x"))
    with pytest.raises(ValidationError):
        attendance_service.manual_edit(owner, open_record.attendance_id, AttendanceEdit(check_out_time=datetime(2024, 5, 2, 19)))
    with pytest.raises(ValidationError):
        attendance_service.manual_edit(owner, open_record.attendance_id, AttendanceEdit(check_out_time=at(9)))


def test_edit_from_payload_parses_times_on_record_date():
    edit = edit_from_payload({"check_in_time": "09:10", "check_out_time": "2024-05-01T19:05:00", "status": "present"}, on_date=DAY)
    assert edit.check_in_time == at(9, 10)
    assert edit.check_out_time == at(19, 5)
    assert edit.status == AttendanceStatus.PRESENT

    with pytest.raises(ValidationError):
        edit_from_payload({}, on_date=DAY)
    with pytest.raises(ValidationError):
        edit_from_payload({"status": "unset"}, on_date=DAY)


def test_edit_from_request_uses_the_records_own_day(attendance_service, attendance, owner, employee):
    earlier = attendance.seed(
        user_id=employee.user_id,
        company_id=employee.company_id,
        work_date=date(2024, 4, 30),
        check_in_time=datetime(2024, 4, 30, 9),
    )
    edited = attendance_service.edit_from_request(owner, earlier.attendance_id, {"check_out_time": "17:00"})
    assert edited.check_out_time == datetime(2024, 4, 30, 17)
    assert edited.status == AttendanceStatus.HALF_DAY


def test_edit_from_request_checks_access_before_parsing(attendance_service, attendance, owner, other_owner, employee, open_record):
    with pytest.raises(AuthorizationError):
        attendance_service.edit_from_request(employee, open_record.attendance_id, {})
    with pytest.raises(NotFoundError):
        attendance_service.edit_from_request(other_owner, open_record.attendance_id, {"check_out_time": "not a time"})
    with pytest.raises(ValidationError):
        attendance_service.edit_from_request(owner, open_record.attendance_id, {})

    attendance.force_update(open_record.attendance_id, is_processed=True)
    with pytest.raises(RecordLocked):
        attendance_service.edit_from_request(owner, open_record.attendance_id, {"notes": "late edit"})


def test_history_and_today_are_scoped_to_caller(attendance_service, attendance, employee, coworker):
    attendance.seed(user_id=employee.user_id, company_id=1, work_date=DAY, check_in_time=at(9))
    attendance.seed(user_id=employee.user_id, company_id=1, work_date=date(2024, 6, 1), check_in_time=datetime(2024, 6, 1, 9))
    attendance.seed(user_id=coworker.user_id, company_id=1, work_date=DAY, check_in_time=at(9))

    history = attendance_service.get_history(employee, year=2024, month=5)
    assert [r.work_date for r in history] == [DAY]
    assert attendance_service.get_today(employee, today=DAY).user_id == employee.user_id
    assert attendance_service.get_today(employee, today=date(2024, 5, 2)) is None


def test_overview_lists_every_active_employee(attendance_service, attendance, owner, employee):
    attendance.seed(user_id=employee.user_id, company_id=1, work_date=DAY, check_in_time=at(9))
    rows = attendance_service.get_overview(owner, work_date=DAY)
    by_name = {row.full_name: row for row in rows}
    assert set(by_name) == {"Asha Employee", "Ravi Employee"}
    assert by_name["Asha Employee"].record is not None
    assert by_name["Ravi Employee"].record is None

    with pytest.raises(AuthorizationError):
        attendance_service.get_overview(employee, work_date=DAY)


def test_employee_month_summary(attendance_service, attendance, owner, other_owner, employee):
    attendance.seed(
        user_id=employee.user_id,
        company_id=1,
        work_date=DAY,
        check_in_time=at(9),
        check_out_time=at(19),
        working_hours=Decimal("10.00"),
        status=AttendanceStatus.PRESENT,
    )
    attendance.seed(user_id=employee.user_id, company_id=1, work_date=date(2024, 5, 2), status=AttendanceStatus.ABSENT)

    view = attendance_service.get_employee_month(owner, employee.user_id, year=2024, month=5)
    assert len(view.records) == 2
    assert view.summary.present_days == 1
    assert view.summary.absent_days == 1
    assert view.summary.total_hours == Decimal("10.00")

    with pytest.raises(EmployeeNotFound):
        attendance_service.get_employee_month(other_owner, employee.user_id, year=2024, month=5)
