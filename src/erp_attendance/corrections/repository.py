from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CorrectionStatus
from .model import AttendanceCorrection, CorrectionListItem


class CorrectionRepository(Protocol):
    def create(
        self,
        *,
        attendance_id: int,
        user_id: int,
        requested_check_in: datetime,
        requested_check_out: datetime,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, correction_id: int) -> Optional[AttendanceCorrection]:
        raise NotImplementedError

    def has_pending(self, *, attendance_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def list_corrections(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[CorrectionStatus] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionListItem]:
        """Newest first, joined with the requester and the record date."""

        raise NotImplementedError

    def approve(
        self,
        *,
        correction_id: int,
        reviewed_by: int,
        reviewed_at: datetime,
        check_in_time: datetime,
        check_out_time: datetime,
        working_hours: Decimal,
        status: AttendanceStatus,
        is_auto_clocked_out: bool = False,
    ) -> bool:
        """Claim the pending correction and overwrite its attendance record.

        Both writes share one transaction. Returns False, writing nothing, when
        the correction is no longer pending. The record's processed flag is
        ignored: approval is the sanctioned way to amend a locked day.
        """

        raise NotImplementedError

    def reject(
        self,
        *,
        correction_id: int,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: str,
    ) -> bool:
        raise NotImplementedError
