from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.policy import ShiftPolicy
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local, parse_clock_value
from ..common.validators import require_int, require_non_empty
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, DEFAULT_LIST_LIMIT
from ..core.enums import CorrectionStatus, NotificationPriority
from ..core.exceptions import AlreadyReviewed, NotFoundError, ValidationError
from ..core.permissions import Capability, require
from ..notifications.service import NotificationService
from ..users.model import Identity
from .model import AttendanceCorrection, CorrectionListItem, SubmittedCorrection
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)


class CorrectionService:
    """Employee correction requests and their owner review.

    Review is the only path that may change a processed record.
    """

    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance: AttendanceRepository,
        notifier: NotificationService,
        *,
        policy: Optional[ShiftPolicy] = None,
        tz_name: str = DEFAULT_BUSINESS_TIMEZONE,
    ):
        self._corrections = corrections
        self._attendance = attendance
        self._notifier = notifier
        self._policy = policy or ShiftPolicy()
        self._tz_name = tz_name

    def submit(
        self,
        identity: Identity,
        *,
        attendance_id: int,
        requested_check_in: Optional[datetime],
        requested_check_out: Optional[datetime],
        reason: str,
    ) -> SubmittedCorrection:
        require(identity.role, Capability.SUBMIT_CORRECTION)
        reason = require_non_empty(reason, "reason")
        record = self._own_record(identity, attendance_id)
        return self._submit(identity, record, requested_check_in, requested_check_out, reason)

    def submit_request(self, identity: Identity, data: dict) -> SubmittedCorrection:
        """Submit from a request body; ``HH:MM`` values are taken on the record's own day."""
        require(identity.role, Capability.SUBMIT_CORRECTION)
        attendance_id = require_int(data.get("attendance_id"), "attendance_id", min_value=1)
        reason = require_non_empty(data.get("reason"), "reason")
        record = self._own_record(identity, attendance_id)

        def clock(field_name: str) -> Optional[datetime]:
            raw = data.get(field_name)
            return parse_clock_value(raw, on_date=record.work_date, tz_name=self._tz_name) if raw else None

        return self._submit(identity, record, clock("requested_check_in"), clock("requested_check_out"), reason)

    def _own_record(self, identity: Identity, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if record is None or record.user_id != identity.user_id:
            raise NotFoundError("Attendance record not found")
        return record

    def _submit(
        self,
        identity: Identity,
        record: AttendanceRecord,
        requested_check_in: Optional[datetime],
        requested_check_out: Optional[datetime],
        reason: str,
    ) -> SubmittedCorrection:
        if requested_check_in is None or requested_check_out is None:
            raise ValidationError("Both requested_check_in and requested_check_out are required")
        for label, value in (("requested_check_in", requested_check_in), ("requested_check_out", requested_check_out)):
            if value.date() != record.work_date:
                raise ValidationError(f"{label} must be on {record.work_date.isoformat()}")
        if requested_check_out <= requested_check_in:
            raise ValidationError("requested_check_out must be after requested_check_in")

        if self._corrections.has_pending(attendance_id=record.attendance_id, user_id=identity.user_id):
            raise ValidationError("A correction for this record is already pending")

        correction_id = self._corrections.create(
            attendance_id=record.attendance_id,
            user_id=identity.user_id,
            requested_check_in=requested_check_in,
            requested_check_out=requested_check_out,
            reason=reason,
        )
        logger.info(
            "correction %s submitted by user %s for attendance %s (locked=%s)",
            correction_id,
            identity.user_id,
            record.attendance_id,
            record.is_processed,
        )
        return SubmittedCorrection(correction=self._get(correction_id), target_locked=record.is_processed)

    def approve(self, identity: Identity, correction_id: int) -> AttendanceCorrection:
        require(identity.role, Capability.REVIEW_CORRECTION)
        correction, record = self._get_reviewable(identity, int(correction_id))

        hours, status = self._policy.evaluate(correction.requested_check_in, correction.requested_check_out)
        claimed = self._corrections.approve(
            correction_id=correction.correction_id,
            reviewed_by=identity.user_id,
            reviewed_at=now_local(self._tz_name),
            check_in_time=correction.requested_check_in,
            check_out_time=correction.requested_check_out,
            working_hours=hours,
            status=status,
            is_auto_clocked_out=record.is_auto_clocked_out and record.check_out_time == correction.requested_check_out,
        )
        if not claimed:
            raise AlreadyReviewed("Correction has already been reviewed")

        logger.info(
            "correction %s approved by user %s: attendance %s now %s h, %s",
            correction.correction_id,
            identity.user_id,
            record.attendance_id,
            hours,
            status.value,
        )
        self._notifier.notify(
            user_id=correction.user_id,
            company_id=record.company_id,
            type="attendance_correction",
            title="Correction approved",
            message=f"Your attendance correction for {record.work_date.isoformat()} was approved.",
            priority=NotificationPriority.MEDIUM,
        )
        return self._get(correction.correction_id)

    def reject(self, identity: Identity, correction_id: int, *, rejection_reason: str) -> AttendanceCorrection:
        require(identity.role, Capability.REVIEW_CORRECTION)
        rejection_reason = require_non_empty(rejection_reason, "rejection_reason")
        correction, record = self._get_reviewable(identity, int(correction_id))

        claimed = self._corrections.reject(
            correction_id=correction.correction_id,
            reviewed_by=identity.user_id,
            reviewed_at=now_local(self._tz_name),
            rejection_reason=rejection_reason,
        )
        if not claimed:
            raise AlreadyReviewed("Correction has already been reviewed")

        logger.info("correction %s rejected by user %s", correction.correction_id, identity.user_id)
        self._notifier.notify(
            user_id=correction.user_id,
            company_id=record.company_id,
            type="attendance_correction",
            title="Correction rejected",
            message=f"Your attendance correction for {record.work_date.isoformat()} was rejected: {rejection_reason}",
            priority=NotificationPriority.MEDIUM,
        )
        return self._get(correction.correction_id)

    def list_mine(self, identity: Identity) -> Sequence[CorrectionListItem]:
        require(identity.role, Capability.SUBMIT_CORRECTION)
        return self._corrections.list_corrections(user_id=identity.user_id, limit=DEFAULT_LIST_LIMIT)

    def list_for_review(
        self,
        identity: Identity,
        *,
        status: Optional[CorrectionStatus] = CorrectionStatus.PENDING,
    ) -> Sequence[CorrectionListItem]:
        require(identity.role, Capability.REVIEW_CORRECTION)
        return self._corrections.list_corrections(company_id=identity.company_id, status=status, limit=DEFAULT_LIST_LIMIT)

    def _get(self, correction_id: int) -> AttendanceCorrection:
        correction = self._corrections.get_by_id(correction_id)
        if correction is None:
            raise NotFoundError("Correction not found")
        return correction

    def _get_reviewable(self, identity: Identity, correction_id: int):
        correction = self._get(correction_id)
        record = self._attendance.get_by_id(correction.attendance_id)
        if record is None or record.company_id != identity.company_id:
            raise NotFoundError("Correction not found")
        if correction.status != CorrectionStatus.PENDING:
            raise AlreadyReviewed(
                "Correction has already been reviewed",
                context={"status": correction.status.value},
            )
        return correction, record
