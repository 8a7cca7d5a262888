"""
Domain models (frozen pydantic). Import here so callers can use them.
"""
from classpoll.models.types import ResourceKind, UserRole, ViewTarget
from classpoll.models.user import User
from classpoll.models.class_group import ClassGroup
from classpoll.models.announcement import Announcement
from classpoll.models.exam import Exam
from classpoll.models.poll import Poll, PollOption
from classpoll.models.resource import Resource
from classpoll.models.school_settings import SchoolSettings
from classpoll.models.notification import AppNotification

__all__ = [
    "ResourceKind", "UserRole", "ViewTarget",
    "User", "ClassGroup", "Announcement", "Exam", "Poll", "PollOption",
    "Resource", "SchoolSettings", "AppNotification",
]
