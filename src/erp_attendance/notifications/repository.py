from __future__ import annotations

from typing import Protocol, Sequence

from ..core.enums import NotificationPriority
from .model import Notification


class NotificationRepository(Protocol):
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
        raise NotImplementedError

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError
