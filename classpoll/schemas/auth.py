"""
Auth request/response schemas.
"""
from pydantic import BaseModel, field_validator

from classpoll.models import UserRole


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_trimmed(cls, v: str) -> str:
        return (v or "").strip()


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    class_group: str | None = None

    class Config:
        from_attributes = True
