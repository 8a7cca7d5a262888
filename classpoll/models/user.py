"""
User model: login by email (case-insensitive) + password, role ADMIN | RESPONSABLE | ELEVE.
class_group is the class name, the join key for target-scoped entities.
"""
from pydantic import field_validator

from classpoll.models.types import DomainModel, UserRole


class User(DomainModel):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    password: str | None = None
    class_group: str | None = None

    @field_validator("class_group", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_email(self, email: str) -> bool:
        return self.email.strip().lower() == (email or "").strip().lower()
