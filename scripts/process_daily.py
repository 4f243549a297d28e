"""Daily attendance processing trigger.

Meant for cron at the configured batch time (19:30 by default), e.g.

    30 19 * * *  cd /srv/erp-attendance && python scripts/process_daily.py

Without ``--date`` it processes today in the business timezone. ``--loop``
keeps the process alive and runs once a day, for hosts without cron.
Exit status is 1 when a run did not finish, so cron can alert.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from dotenv import load_dotenv

from erp_attendance.common.datetime_utils import now_local, parse_iso_date
from erp_attendance.common.logging_utils import configure_logging
from erp_attendance.config import load_settings
from erp_attendance.container import build_container
from erp_attendance.processing.schedule import run_daily_loop


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Auto clock-out, mark absentees and lock one day of attendance.")
    parser.add_argument("--date", help="Work date to process (YYYY-MM-DD). Defaults to today.")
    parser.add_argument("--company-id", type=int, default=None, help="Only process one company.")
    parser.add_argument("--loop", action="store_true", help="Run forever, once a day at DAILY_BATCH_TIME.")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)

    if args.loop:
        run_daily_loop(
            container.daily_processor,
            run_at=settings.DAILY_BATCH_TIME,
            tz_name=settings.BUSINESS_TIMEZONE,
        )
        return 0

    work_date = parse_iso_date(args.date) if args.date else now_local(settings.BUSINESS_TIMEZONE).date()
    result = container.daily_processor.process(work_date, company_id=args.company_id)
    print(
        f"{'OK' if result.success else 'FAILED'}: {work_date} "
        f"auto_clocked_out={result.auto_clocked_out} absent_created={result.absent_created} "
        f"locked={result.locked} skipped_open={result.skipped_open}"
        + (f" error={result.error}" if result.error else "")
    )
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
