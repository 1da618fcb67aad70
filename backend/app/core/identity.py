"""
Quiz Platform - Caller Identity
The authenticated caller as seen by the service layer
"""
import uuid
from dataclasses import dataclass

from app.models.user import STAFF_ROLES, UserRole


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    role: UserRole

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @classmethod
    def of(cls, user) -> "Identity":
        return cls(user_id=user.id, role=UserRole(user.role))
