from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for the user directory.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        raise NotImplementedError

    def list_by_role(self, *, company_id: int, role: Role, active_only: bool = True) -> Sequence[User]:
        raise NotImplementedError
