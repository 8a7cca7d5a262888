"""
Exam request schemas.
"""
import re
from datetime import datetime

from pydantic import BaseModel, field_validator

from classpoll.schemas.common import OptionalText, Text

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ExamCreate(BaseModel):
    subject: Text
    date: datetime
    start_time: str  # HH:MM
    duration_minutes: int = 60
    room: Text
    notes: OptionalText = None
    target_class: OptionalText = None

    @field_validator("start_time")
    @classmethod
    def start_time_hhmm(cls, v: str) -> str:
        v = (v or "").strip()
        if not _HHMM.match(v):
            raise ValueError("start_time must be HH:MM (24h)")
        return v

    @field_validator("duration_minutes")
    @classmethod
    def duration_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("duration_minutes must be at least 1")
        return v
