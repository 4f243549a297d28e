from __future__ import annotations

import logging
import time
from datetime import datetime, time as time_of_day, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, DEFAULT_DAILY_BATCH_TIME
from .daily import DailyAttendanceProcessor, DailyProcessingResult

logger = logging.getLogger(__name__)


def next_run_at(now: datetime, run_at: time_of_day = DEFAULT_DAILY_BATCH_TIME) -> datetime:
    """The first ``run_at`` strictly after ``now`` (today or tomorrow)."""
    candidate = datetime.combine(now.date(), run_at)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def run_daily_loop(
    processor: DailyAttendanceProcessor,
    *,
    run_at: time_of_day = DEFAULT_DAILY_BATCH_TIME,
    tz_name: str = DEFAULT_BUSINESS_TIMEZONE,
    sleep: Callable[[float], None] = time.sleep,
    max_runs: Optional[int] = None,
) -> list[DailyProcessingResult]:
    """Sleep until ``run_at`` each day and process that day for all companies.

    For hosts without cron. ``max_runs`` bounds the loop (tests, one-shot use).
    """
    results: list[DailyProcessingResult] = []
    while max_runs is None or len(results) < max_runs:
        target = next_run_at(now_local(tz_name), run_at)
        wait = max((target - now_local(tz_name)).total_seconds(), 0.0)
        logger.info("next daily processing at %s (in %.0fs)", target, wait)
        sleep(wait)
        results.append(processor.process(target.date()))
    return results
