from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import NotificationPriority


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    company_id: int
    type: str
    title: str
    message: str
    priority: NotificationPriority
    created_at: datetime
    is_read: bool = False
