"""End-of-day attendance processing.

One run, for one date, does three steps in order:

1. auto clock-out of records still open, at the shift end of that date;
2. an absent record for every active employee with no record;
3. lock every unprocessed record of the date.

Each step only touches rows its guard still matches, so running the same date
twice (cron retry, owner clicking the button) converges to the same state.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ..attendance.policy import ShiftPolicy
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_BATCH_MAX_SECONDS, DEFAULT_BUSINESS_TIMEZONE

logger = logging.getLogger(__name__)


class BatchBudgetExceeded(Exception):
    pass


@dataclass
class DailyProcessingResult:
    work_date: date
    company_id: Optional[int] = None
    auto_clocked_out: int = 0
    skipped_open: int = 0
    absent_created: int = 0
    locked: int = 0
    success: bool = True
    timed_out: bool = False
    error: Optional[str] = None
    duration_seconds: float = 0.0


class DailyAttendanceProcessor:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        policy: Optional[ShiftPolicy] = None,
        tz_name: str = DEFAULT_BUSINESS_TIMEZONE,
        max_seconds: float = DEFAULT_BATCH_MAX_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._attendance = attendance
        self._policy = policy or ShiftPolicy()
        self._tz_name = tz_name
        self._max_seconds = float(max_seconds)
        self._clock = clock

    def process(self, work_date: date, *, company_id: Optional[int] = None) -> DailyProcessingResult:
        """Run all three steps for ``work_date``; ``company_id=None`` means every company.

        Never raises: failures are logged and reported on the result.
        """
        result = DailyProcessingResult(work_date=work_date, company_id=company_id)
        started = self._clock()
        scope = f"company {company_id}" if company_id is not None else "all companies"
        logger.info("daily processing started for %s (%s)", work_date, scope)

        try:
            self._auto_clock_out(work_date, company_id, result, started)
            self._mark_absentees(work_date, company_id, result, started)
            self._check_budget(started)
            result.locked = self._attendance.lock_records_for_date(
                work_date,
                processed_at=now_local(self._tz_name),
                company_id=company_id,
            )
        except BatchBudgetExceeded:
            result.success = False
            result.timed_out = True
            result.error = f"Stopped after exceeding {self._max_seconds:g}s; run again to finish"
            logger.warning("daily processing for %s stopped: time budget exceeded (%s)", work_date, result)
        except Exception as exc:
            result.success = False
            result.error = str(exc) or exc.__class__.__name__
            logger.exception("daily processing for %s failed (%s)", work_date, result)
        finally:
            result.duration_seconds = round(self._clock() - started, 3)

        if result.success:
            logger.info(
                "daily processing for %s done: auto_clocked_out=%s absent_created=%s locked=%s skipped_open=%s",
                work_date,
                result.auto_clocked_out,
                result.absent_created,
                result.locked,
                result.skipped_open,
            )
        return result

    def _check_budget(self, started: float) -> None:
        if self._clock() - started > self._max_seconds:
            raise BatchBudgetExceeded()

    def _auto_clock_out(self, work_date: date, company_id: Optional[int], result: DailyProcessingResult, started: float) -> None:
        shift_end = self._policy.shift_end_on(work_date)
        for record in self._attendance.list_open_for_date(work_date, company_id=company_id):
            self._check_budget(started)
            if record.check_in_time is None or record.check_in_time >= shift_end:
                # Cannot close at shift end without breaking check_out > check_in.
                logger.warning("attendance %s left open: check-in %s is not before %s", record.attendance_id, record.check_in_time, shift_end)
                result.skipped_open += 1
                continue

            hours, status = self._policy.evaluate(record.check_in_time, shift_end)
            if self._attendance.auto_clock_out(
                attendance_id=record.attendance_id,
                check_out_time=shift_end,
                working_hours=hours,
                status=status,
            ):
                result.auto_clocked_out += 1
                logger.debug("attendance %s auto clocked out (%s h, %s)", record.attendance_id, hours, status.value)

    def _mark_absentees(self, work_date: date, company_id: Optional[int], result: DailyProcessingResult, started: float) -> None:
        for user_id, user_company_id in self._attendance.absentees_for_date(work_date, company_id=company_id):
            self._check_budget(started)
            if self._attendance.create_absent(user_id=user_id, company_id=user_company_id, work_date=work_date):
                result.absent_created += 1
