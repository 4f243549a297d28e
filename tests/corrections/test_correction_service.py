from __future__ import annotations

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from erp_attendance.attendance.model import AttendanceEdit
from erp_attendance.core.enums import AttendanceStatus, CorrectionStatus
from erp_attendance.core.exceptions import (
    AlreadyReviewed,
    AuthorizationError,
    NotFoundError,
    RecordLocked,
    ValidationError,
)

DAY = date(2024, 5, 1)


def at(hh: int, mm: int = 0) -> datetime:
    return datetime(2024, 5, 1, hh, mm)


@pytest.fixture
def locked_record(attendance, employee):
    # Auto clocked out by the batch and locked.
    return attendance.seed(
        user_id=employee.user_id,
        company_id=employee.company_id,
        work_date=DAY,
        check_in_time=at(9),
        check_out_time=at(19),
        working_hours=Decimal("10.00"),
        status=AttendanceStatus.PRESENT,
        is_auto_clocked_out=True,
        is_processed=True,
    )


def submit(correction_service, identity, record, check_in=at(9), check_out=at(17), reason="Left early for a client visit"):
    return correction_service.submit(
        identity,
        attendance_id=record.attendance_id,
        requested_check_in=check_in,
        requested_check_out=check_out,
        reason=reason,
    )


def test_submission_on_locked_record_is_allowed_with_flag(correction_service, employee, locked_record):
    submitted = submit(correction_service, employee, locked_record)
    assert submitted.target_locked is True
    assert submitted.correction.status == CorrectionStatus.PENDING


def test_submission_validation(correction_service, employee, coworker, locked_record):
    with pytest.raises(ValidationError):
        submit(correction_service, employee, locked_record, reason="  ")
    with pytest.raises(ValidationError):
        submit(correction_service, employee, locked_record, check_out=None)
    with pytest.raises(ValidationError):
        submit(correction_service, employee, locked_record, check_in=at(17), check_out=at(9))
    with pytest.raises(ValidationError):
        submit(correction_service, employee, locked_record, check_out=datetime(2024, 5, 2, 1, 0))
    with pytest.raises(NotFoundError):
        submit(correction_service, coworker, locked_record)


def test_only_one_pending_correction_per_record(correction_service, employee, locked_record):
    submit(correction_service, employee, locked_record)
    with pytest.raises(ValidationError):
        submit(correction_service, employee, locked_record)


def test_owner_cannot_submit(correction_service, owner, locked_record):
    with pytest.raises(AuthorizationError):
        submit(correction_service, owner, locked_record)


def test_submit_request_parses_clock_values_on_record_day(correction_service, employee, locked_record):
    submitted = correction_service.submit_request(
        employee,
        {
            "attendance_id": str(locked_record.attendance_id),
            "requested_check_in": "09:00",
            "requested_check_out": "17:30",
            "reason": "Doctor appointment",
        },
    )
    assert submitted.target_locked is True
    assert submitted.correction.requested_check_in == at(9)
    assert submitted.correction.requested_check_out == at(17, 30)


def test_submit_request_validation(correction_service, owner, employee, coworker, locked_record):
    body = {"attendance_id": locked_record.attendance_id, "requested_check_in": "09:00", "requested_check_out": "17:00", "reason": "x"}
    with pytest.raises(AuthorizationError):
        correction_service.submit_request(owner, body)
    with pytest.raises(ValidationError, match="attendance_id must be an integer"):
        correction_service.submit_request(employee, dict(body, attendance_id=None))
    with pytest.raises(ValidationError, match="reason is required"):
        correction_service.submit_request(employee, dict(body, reason=""))
    with pytest.raises(NotFoundError):
        correction_service.submit_request(coworker, body)
    with pytest.raises(ValidationError):
        correction_service.submit_request(employee, dict(body, requested_check_out=None))


def test_approve_bypasses_lock_and_recomputes(
    correction_service, attendance_service, attendance, owner, employee, locked_record, notifications
):
    # A direct edit of the locked record is refused...
    with pytest.raises(RecordLocked):
        attendance_service.manual_edit(owner, locked_record.attendance_id, AttendanceEdit(check_out_time=at(17)))

    # ...but the approved correction goes through.
    correction = submit(correction_service, employee, locked_record).correction
    approved = correction_service.approve(owner, correction.correction_id)
    assert approved.status == CorrectionStatus.APPROVED
    assert approved.reviewed_by == owner.user_id

    record = attendance.get_by_id(locked_record.attendance_id)
    assert record.check_out_time == at(17)
    assert record.working_hours == Decimal("8.00")
    assert record.status == AttendanceStatus.HALF_DAY
    assert record.is_manual is True
    assert record.edited_by == owner.user_id
    assert record.is_processed is True
    assert record.is_auto_clocked_out is False
    assert [n.title for n in notifications.for_user(employee.user_id)] == ["Correction approved"]


def test_reject_leaves_record_untouched(correction_service, attendance, owner, employee, locked_record, notifications):
    correction = submit(correction_service, employee, locked_record).correction
    with pytest.raises(ValidationError):
        correction_service.reject(owner, correction.correction_id, rejection_reason="")

    rejected = correction_service.reject(owner, correction.correction_id, rejection_reason="No proof")
    assert rejected.status == CorrectionStatus.REJECTED
    assert rejected.rejection_reason == "No proof"
    assert attendance.get_by_id(locked_record.attendance_id) == locked_record
    assert [n.title for n in notifications.for_user(employee.user_id)] == ["Correction rejected"]


def test_reviewed_corrections_are_terminal(correction_service, owner, employee, locked_record):
    correction = submit(correction_service, employee, locked_record).correction
    correction_service.reject(owner, correction.correction_id, rejection_reason="No proof")
    with pytest.raises(AlreadyReviewed):
        correction_service.approve(owner, correction.correction_id)
    with pytest.raises(AlreadyReviewed):
        correction_service.reject(owner, correction.correction_id, rejection_reason="again")


def test_concurrent_reviews_have_one_winner(correction_service, owner, employee, locked_record):
    correction = submit(correction_service, employee, locked_record).correction
    outcomes = []
    barrier = threading.Barrier(2)

    def review(action):
        barrier.wait()
        try:
            action()
            outcomes.append("ok")
        except AlreadyReviewed:
            outcomes.append("lost")

    threads = [
        threading.Thread(target=review, args=(lambda: correction_service.approve(owner, correction.correction_id),)),
        threading.Thread(
            target=review,
            args=(lambda: correction_service.reject(owner, correction.correction_id, rejection_reason="dup"),),
        ),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["lost", "ok"]


def test_review_is_company_scoped(correction_service, other_owner, employee, locked_record):
    correction = submit(correction_service, employee, locked_record).correction
    with pytest.raises(NotFoundError):
        correction_service.approve(other_owner, correction.correction_id)
    with pytest.raises(AuthorizationError):
        correction_service.approve(employee, correction.correction_id)


def test_lists(correction_service, owner, other_owner, employee, locked_record):
    correction = submit(correction_service, employee, locked_record).correction

    mine = correction_service.list_mine(employee)
    assert [c.correction_id for c in mine] == [correction.correction_id]
    assert mine[0].work_date == DAY

    assert len(correction_service.list_for_review(owner)) == 1
    assert correction_service.list_for_review(owner, status=CorrectionStatus.APPROVED) == []
    assert correction_service.list_for_review(other_owner) == []
