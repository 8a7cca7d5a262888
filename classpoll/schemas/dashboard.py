"""
Dashboard summary response.
"""
from pydantic import BaseModel

from classpoll.models import Announcement, AppNotification, Exam, Poll


class DashboardStats(BaseModel):
    students: int
    polls: int
    exams: int
    resources: int


class DashboardResponse(BaseModel):
    school_name: str
    stats: DashboardStats
    upcoming_exam: Exam | None = None
    active_poll: Poll | None = None
    latest_announcement: Announcement | None = None
    notifications: list[AppNotification] = []
