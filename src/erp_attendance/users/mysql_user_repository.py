from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, company_id, full_name, email, password_hash, role, is_active"


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        company_id=int(row["company_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s"
        params: list[object] = [email]
        if role is not None:
            sql += " AND role=%s"
            params.append(role.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_by_role(self, *, company_id: int, role: Role, active_only: bool = True) -> Sequence[User]:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE company_id=%s AND role=%s"
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY full_name ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(company_id), role.value))
            return [_row_to_user(r) for r in fetchall(cur)]
