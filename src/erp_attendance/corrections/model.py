from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import CorrectionStatus


@dataclass(frozen=True)
class AttendanceCorrection:
    """An employee's request to amend one attendance record."""

    correction_id: int
    attendance_id: int
    user_id: int
    requested_check_in: datetime
    requested_check_out: datetime
    reason: str
    status: CorrectionStatus
    created_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class CorrectionListItem:
    """Review-list row: the correction joined with its requester and record date."""

    correction_id: int
    attendance_id: int
    user_id: int
    full_name: str
    email: str
    work_date: date
    requested_check_in: datetime
    requested_check_out: datetime
    reason: str
    status: CorrectionStatus
    created_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class SubmittedCorrection:
    correction: AttendanceCorrection
    # True when the target record was already locked by the daily batch.
    target_locked: bool = False
