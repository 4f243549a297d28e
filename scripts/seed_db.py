"""Seed the demo company (owner, two employees, one biometric device)."""
from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from dotenv import load_dotenv

from erp_attendance.common.logging_utils import configure_logging
from erp_attendance.config import load_settings
from erp_attendance.database.bootstrap import DEMO_DEVICE, DEMO_USERS, ensure_demo_data
from erp_attendance.database.connection import DBConfig


def main() -> int:
    load_dotenv(override=False)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    company_id = ensure_demo_data(db_config)

    print(f"OK: demo company {company_id} -> {DBConfig.from_dict(db_config).describe()}")
    for full_name, email, password, role in DEMO_USERS:
        print(f"  {role.value:<9} {email:<20} {password}  ({full_name})")
    print(f"  device    {DEMO_DEVICE[0]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
