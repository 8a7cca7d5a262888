"""
Announcement: immutable after creation except deletion. Author name is denormalized at creation.
An announcement with meet_link is a scheduled video meeting at `date`.
"""
from classpoll.models.types import TargetScoped, UtcDateTime


class Announcement(TargetScoped):
    id: str
    title: str
    subject: str
    meet_link: str | None = None
    date: UtcDateTime
    is_urgent: bool = False
    author_id: str
    author_name: str
