"""Create the database and tables from database/schema.sql.

    python scripts/init_db.py            # schema only
    python scripts/init_db.py --seed     # schema + demo company
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from dotenv import load_dotenv

from erp_attendance.common.logging_utils import configure_logging
from erp_attendance.config import load_settings
from erp_attendance.database.bootstrap import DEFAULT_SCHEMA_PATH, apply_schema, ensure_demo_data, list_tables
from erp_attendance.database.connection import DBConfig


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Apply the attendance schema to the configured MySQL database.")
    parser.add_argument("--schema", default=str(DEFAULT_SCHEMA_PATH), help="Path to the schema file.")
    parser.add_argument("--seed", action="store_true", help="Also seed the demo company.")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    statements = apply_schema(db_config, schema_path=args.schema)
    if args.seed:
        ensure_demo_data(db_config)
    tables = list_tables(db_config)
    print(f"OK: {statements} statements -> {DBConfig.from_dict(db_config).describe()} (tables: {', '.join(tables)})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
