"""
Announcement request schemas. Author fields come from the viewer, never from the request.
"""
from datetime import datetime

from pydantic import BaseModel

from classpoll.schemas.common import OptionalText, Text


class AnnouncementCreate(BaseModel):
    title: Text
    subject: Text
    meet_link: OptionalText = None
    date: datetime
    is_urgent: bool = False
    target_class: OptionalText = None  # None: whole school
