from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """The caller of an operation, normalized once at the authentication boundary."""

    user_id: int
    role: Role
    company_id: int


@dataclass(frozen=True)
class User:
    """Directory user as the attendance core sees it (read-only here)."""

    user_id: int
    company_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True

    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, role=self.role, company_id=self.company_id)

    def is_employee_of(self, company_id: int) -> bool:
        """Employee role in ``company_id``; owners and admins do not clock or get paid here."""
        return self.role == Role.EMPLOYEE and self.company_id == company_id
