from __future__ import annotations

from erp_attendance.core.enums import Role
from erp_attendance.users.model import Identity, User


def make_user(role: Role, company_id: int = 1) -> User:
    return User(10, company_id, "Test User", "test@acme.test", "hash", role)


def test_identity_carries_the_session_fields():
    assert make_user(Role.ADMIN).identity() == Identity(user_id=10, role=Role.ADMIN, company_id=1)


def test_is_employee_of():
    assert make_user(Role.EMPLOYEE).is_employee_of(1) is True
    assert make_user(Role.EMPLOYEE).is_employee_of(2) is False
    assert make_user(Role.OWNER).is_employee_of(1) is False
