"""
User management schemas (admin only). Students and delegates must belong to a class group.
"""
from pydantic import BaseModel, EmailStr, field_validator, model_validator

from classpoll.models import UserRole
from classpoll.schemas.common import OptionalText, Text


class UserWrite(BaseModel):
    name: Text
    email: EmailStr
    role: UserRole = UserRole.STUDENT
    password: OptionalText = None
    class_group: OptionalText = None

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str | None) -> str | None:
        if v is not None and len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes (bcrypt limit)")
        return v

    @model_validator(mode="after")
    def class_required_for_students(self):
        if self.role != UserRole.ADMIN and not self.class_group:
            raise ValueError("class_group is required for students and delegates")
        return self


class UserCreate(UserWrite):
    """password None: the default secret."""


class UserUpdate(UserWrite):
    """Full replacement of the editable fields. password None: keep the current secret."""
