from __future__ import annotations

import logging
from typing import Sequence

from ..core.enums import NotificationPriority
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Fire-and-forget dispatch: a failed notification never fails the caller."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(
        self,
        *,
        user_id: int,
        company_id: int,
        type: str,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> None:
        try:
            self._notifications.create(
                user_id=int(user_id),
                company_id=int(company_id),
                type=type,
                title=title,
                message=message,
                priority=priority,
            )
            logger.debug("notification %r sent to user %s", title, user_id)
        except Exception:
            logger.exception("failed to notify user %s (%s)", user_id, type)

    def list_for_user(self, *, user_id: int, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id=int(user_id), unread_only=unread_only)
