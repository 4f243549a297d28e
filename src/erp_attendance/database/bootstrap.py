from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

_QUOTES = ("'", '"', "`")


def _connect(db_config: dict, *, with_database: bool = True):
    return mysql.connector.connect(**DBConfig.from_dict(db_config).connect_kwargs(with_database=with_database))


def _without_database_switch(sql: str) -> str:
    # The target database comes from DB_CONFIG, not from the file.
    return re.sub(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;", "", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a schema file on top-level ';'. ``--`` comments outside quotes are dropped."""
    statement: list[str] = []
    quote: Optional[str] = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            statement.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                statement.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
            statement.append(ch)
        elif sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = len(sql) if newline == -1 else newline
            continue
        elif ch == ";":
            text = "".join(statement).strip()
            if text:
                yield text
            statement = []
        else:
            statement.append(ch)
        i += 1

    text = "".join(statement).strip()
    if text:
        yield text


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = DEFAULT_SCHEMA_PATH) -> int:
    """Create the database and every table (idempotent). Returns the statement count."""
    ensure_database_exists(db_config)
    sql = _without_database_switch(Path(schema_path).read_text(encoding="utf-8"))

    executed = 0
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            executed += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied from %s (%s statements)", schema_path, executed)
    return executed


DEMO_COMPANY = "Demo Co"
DEMO_DEVICE = ("DEMO-DEVICE-1", "Front door")
# (full_name, email, password, role)
DEMO_USERS = (
    ("Demo Owner", "owner@demo.local", "owner123", Role.OWNER),
    ("Asha Employee", "asha@demo.local", "employee123", Role.EMPLOYEE),
    ("Ravi Employee", "ravi@demo.local", "employee123", Role.EMPLOYEE),
)


def ensure_demo_data(db_config: dict) -> int:
    """Seed one demo company with an owner, two employees and a biometric device.

    Re-running resets the demo passwords and reactivates the users. Returns the
    company id.
    """
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT company_id FROM companies WHERE company_name=%s", (DEMO_COMPANY,))
        row = cur.fetchone()
        if row:
            company_id = int(row["company_id"])
        else:
            cur.execute("INSERT INTO companies (company_name) VALUES (%s)", (DEMO_COMPANY,))
            company_id = int(cur.lastrowid)

        for full_name, email, password, role in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (company_id, full_name, email, password_hash, role, is_active)
                VALUES (%s, %s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE
                    company_id=VALUES(company_id), full_name=VALUES(full_name),
                    password_hash=VALUES(password_hash), role=VALUES(role), is_active=1
                """,
                (company_id, full_name, email, generate_password_hash(password), role.value),
            )

        device_id, device_name = DEMO_DEVICE
        cur.execute(
            """
            INSERT IGNORE INTO biometric_devices (device_id, company_id, device_name, is_active)
            VALUES (%s, %s, %s, 1)
            """,
            (device_id, company_id, device_name),
        )
        conn.commit()
    finally:
        conn.close()
    logger.info("demo company seeded (company_id=%s, users=%s)", company_id, len(DEMO_USERS))
    return company_id


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
