"""
Exam (DS) schedule entry. start_time is the "HH:MM" wall-clock start shown to students.
"""
from classpoll.models.types import TargetScoped, UtcDateTime


class Exam(TargetScoped):
    id: str
    subject: str
    date: UtcDateTime
    start_time: str
    duration_minutes: int
    room: str
    notes: str | None = None
    created_by_id: str
