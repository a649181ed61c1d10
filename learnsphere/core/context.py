from dataclasses import dataclass
from enum import Enum

from learnsphere.models.user import User


class Role(str, Enum):
    LEARNER = "learner"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


@dataclass(frozen=True)
class SessionContext:
    """
    Who is making the request, resolved once per request.

    Services receive this explicitly instead of reading global auth state.
    """

    user: User
    role: Role
    token: str

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_instructor(self) -> bool:
        return self.role == Role.INSTRUCTOR

    def can_manage(self, owner_id: int) -> bool:
        """Admins manage everything; instructors manage what they own."""
        return self.is_admin or (self.is_instructor and self.user.id == owner_id)
