"""
Shared domain types: roles, view targets, UTC datetimes and the frozen model base.
Every domain entity is an immutable pydantic model; the cache replaces entities, never edits them.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, field_validator


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    RESPONSIBLE = "RESPONSABLE"  # class delegate: a student with publishing rights for their class
    STUDENT = "ELEVE"


class ResourceKind(str, Enum):
    LINK = "LINK"
    BOOK = "BOOK"
    FILE = "FILE"


class EntityKind(str, Enum):
    """Cached collections; values are the remote table names."""
    USERS = "users"
    CLASS_GROUPS = "class_groups"
    ANNOUNCEMENTS = "announcements"
    EXAMS = "exams"
    POLLS = "polls"
    RESOURCES = "resources"


class ViewTarget(str, Enum):
    """Navigation targets a notification can point at. Values match the front-end view names."""
    DASHBOARD = "DASHBOARD"
    ANNOUNCEMENTS = "INFOS"
    EXAMS = "DS"
    POLLS = "POLLS"
    RESOURCES = "RESOURCES"
    USERS = "USERS"
    SETTINGS = "SETTINGS"


def _as_utc(v: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(_as_utc)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TargetScoped(DomainModel):
    """Entity optionally restricted to one class group by name; None means school-wide."""

    target_class: str | None = None

    @field_validator("target_class", mode="before")
    @classmethod
    def _blank_is_school_wide(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
