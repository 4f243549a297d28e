from __future__ import annotations

from typing import Sequence

from ..core.enums import NotificationPriority
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        type: str,
        title: str,
        message: str,
        priority: NotificationPriority,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, company_id, type, title, message, priority)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), int(company_id), type, title, message, priority.value),
            )
            return int(cur.lastrowid)

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        sql = """
            SELECT notification_id, user_id, company_id, type, title, message, priority, created_at, is_read
            FROM notifications
            WHERE user_id=%s
        """
        if unread_only:
            sql += " AND is_read=0"
        sql += " ORDER BY created_at DESC LIMIT %s"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(user_id), int(limit)))
            return [
                Notification(
                    notification_id=int(r["notification_id"]),
                    user_id=int(r["user_id"]),
                    company_id=int(r["company_id"]),
                    type=r["type"],
                    title=r["title"],
                    message=r["message"],
                    priority=NotificationPriority(r["priority"]),
                    created_at=r["created_at"],
                    is_read=bool(r["is_read"]),
                )
                for r in fetchall(cur)
            ]
