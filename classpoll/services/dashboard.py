"""
Home dashboard summary. Collections passed in are already narrowed to the viewer;
only the student count is taken over all users.
"""
from datetime import datetime
from typing import Sequence

from classpoll.models import Announcement, AppNotification, Exam, Poll, Resource, User, UserRole
from classpoll.schemas.dashboard import DashboardResponse, DashboardStats

DASHBOARD_NOTIFICATION_COUNT = 4


def build_dashboard(
    now: datetime,
    school_name: str,
    users: Sequence[User],
    announcements: Sequence[Announcement],
    exams: Sequence[Exam],
    polls: Sequence[Poll],
    resources: Sequence[Resource],
    notifications: Sequence[AppNotification],
) -> DashboardResponse:
    stats = DashboardStats(
        students=sum(1 for u in users if u.role == UserRole.STUDENT),
        polls=len(polls),
        exams=len(exams),
        resources=len(resources),
    )
    upcoming = next((e for e in sorted(exams, key=lambda e: e.date) if e.date > now), None)
    active_poll = next((p for p in polls if p.is_open(now)), None)
    latest = max(announcements, key=lambda a: a.date, default=None)
    return DashboardResponse(
        school_name=school_name,
        stats=stats,
        upcoming_exam=upcoming,
        active_poll=active_poll,
        latest_announcement=latest,
        notifications=list(notifications[:DASHBOARD_NOTIFICATION_COUNT]),
    )
