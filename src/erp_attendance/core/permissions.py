"""Capability-based authorization.

One table decides which role may perform which operation. Services call
``require(role, capability)`` instead of comparing role strings inline.
"""
from __future__ import annotations

from enum import Enum

from .enums import Role
from .exceptions import AuthorizationError


class Capability(str, Enum):
    CLOCK = "attendance:clock"
    VIEW_OWN_ATTENDANCE = "attendance:view_own"
    VIEW_COMPANY_ATTENDANCE = "attendance:view_company"
    EDIT_ATTENDANCE = "attendance:edit"
    SUBMIT_CORRECTION = "corrections:submit"
    REVIEW_CORRECTION = "corrections:review"
    RUN_DAILY_BATCH = "attendance:process_daily"
    MANAGE_PAYROLL = "payroll:manage"
    VIEW_OWN_PAYROLL = "payroll:view_own"
    VIEW_COMPANY_PAYROLL = "payroll:view_company"


_MANAGER_CAPABILITIES = frozenset(
    {
        Capability.VIEW_COMPANY_ATTENDANCE,
        Capability.EDIT_ATTENDANCE,
        Capability.REVIEW_CORRECTION,
        Capability.RUN_DAILY_BATCH,
        Capability.MANAGE_PAYROLL,
        Capability.VIEW_COMPANY_PAYROLL,
    }
)

POLICY: dict[Role, frozenset[Capability]] = {
    Role.OWNER: _MANAGER_CAPABILITIES,
    Role.ADMIN: _MANAGER_CAPABILITIES,
    Role.EMPLOYEE: frozenset(
        {
            Capability.CLOCK,
            Capability.VIEW_OWN_ATTENDANCE,
            Capability.SUBMIT_CORRECTION,
            Capability.VIEW_OWN_PAYROLL,
        }
    ),
}


def can(role: Role, capability: Capability) -> bool:
    return capability in POLICY.get(role, frozenset())


def require(role: Role, capability: Capability) -> None:
    if not can(role, capability):
        raise AuthorizationError("You are not allowed to perform this action")
