"""
Notification Derivation Engine: builds the viewer's activity feed from the visible collections.
Pure: same inputs and `now` always give the same list. Nothing is stored.
"""
from datetime import datetime, timedelta
from typing import Iterable

from classpoll.models import Announcement, AppNotification, Exam, Poll, Resource, User
from classpoll.models.types import ViewTarget
from classpoll.services.visibility import visible_to

EXAM_WINDOW_DAYS = 7
MEET_WINDOW_HOURS = 24
ANNOUNCEMENT_WINDOW_HOURS = 48
POLL_WINDOW_HOURS = 48
RESOURCE_WINDOW_HOURS = 24


def _whole_days(later: datetime, earlier: datetime) -> int:
    """Full days between the two instants, truncated toward zero."""
    return int((later - earlier) / timedelta(days=1))


def _whole_hours(later: datetime, earlier: datetime) -> int:
    return int((later - earlier) / timedelta(hours=1))


def _exam_notifications(now: datetime, exams: Iterable[Exam]) -> list[AppNotification]:
    out = []
    for exam in exams:
        days = _whole_days(exam.date, now)
        if not 0 <= days <= EXAM_WINDOW_DAYS:
            continue
        when = "today" if days == 0 else f"in {days} days"
        out.append(AppNotification(
            id=f"exam-{exam.id}",
            category="alert",
            title="Upcoming exam",
            message=f"{exam.subject} exam {when}.",
            link_to=ViewTarget.EXAMS,
            timestamp=exam.date,
        ))
    return out


def _announcement_notifications(now: datetime, announcements: Iterable[Announcement]) -> list[AppNotification]:
    out = []
    for ann in announcements:
        hours_until = _whole_hours(ann.date, now)
        if ann.meet_link and 0 < hours_until < MEET_WINDOW_HOURS:
            out.append(AppNotification(
                id=f"meet-{ann.id}",
                category="info",
                title="Video class soon",
                message=f'The class "{ann.title}" starts soon.',
                link_to=ViewTarget.ANNOUNCEMENTS,
                timestamp=ann.date,
            ))
        elif abs(_whole_hours(now, ann.date)) < ANNOUNCEMENT_WINDOW_HOURS:
            # a meeting outside its 24h window still shows as a regular announcement
            out.append(AppNotification(
                id=f"ann-{ann.id}",
                category="alert" if ann.is_urgent else "info",
                title="Urgent announcement" if ann.is_urgent else "New announcement",
                message=ann.title,
                link_to=ViewTarget.ANNOUNCEMENTS,
                timestamp=ann.date,
            ))
    return out


def _poll_notifications(now: datetime, viewer: User | None, polls: Iterable[Poll]) -> list[AppNotification]:
    viewer_id = viewer.id if viewer is not None else ""
    return [
        AppNotification(
            id=f"poll-{poll.id}",
            category="success",
            title="New poll",
            message=poll.title,
            link_to=ViewTarget.POLLS,
            timestamp=poll.created_at,
        )
        for poll in polls
        if _whole_hours(now, poll.created_at) < POLL_WINDOW_HOURS and not poll.has_voted(viewer_id)
    ]


def _resource_notifications(now: datetime, resources: Iterable[Resource]) -> list[AppNotification]:
    return [
        AppNotification(
            id=f"res-{res.id}",
            category="info",
            title="New resource",
            message=f"Added in {res.subject}: {res.title}",
            link_to=ViewTarget.RESOURCES,
            timestamp=res.created_at,
        )
        for res in resources
        if _whole_hours(now, res.created_at) < RESOURCE_WINDOW_HOURS
    ]


def derive_notifications(
    now: datetime,
    viewer: User | None,
    announcements: Iterable[Announcement],
    exams: Iterable[Exam],
    polls: Iterable[Poll],
    resources: Iterable[Resource],
) -> list[AppNotification]:
    """
    Feed for viewer at `now`, newest timestamp first.
    Sources are scoped to what the viewer may see; the sort is stable, so ties keep the
    exam, announcement, poll, resource order.
    """
    notifications = (
        _exam_notifications(now, visible_to(viewer, exams))
        + _announcement_notifications(now, visible_to(viewer, announcements))
        + _poll_notifications(now, viewer, visible_to(viewer, polls))
        + _resource_notifications(now, visible_to(viewer, resources))
    )
    notifications.sort(key=lambda n: n.timestamp, reverse=True)
    return notifications
