from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    OWNER = "owner"
    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Day status stored on an attendance record."""

    PRESENT = "present"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    UNSET = "unset"


class ClockMethod(str, Enum):
    MANUAL = "manual"
    BIOMETRIC = "biometric"


class ClockAction(str, Enum):
    """Action carried by a biometric device event."""

    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class CorrectionStatus(str, Enum):
    """Review state of an attendance correction (pending -> approved | rejected)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
