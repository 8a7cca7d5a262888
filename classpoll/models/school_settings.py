"""
School settings singleton: display name (also the application title) and theme.
"""
from classpoll.models.types import DomainModel


class SchoolSettings(DomainModel):
    school_name: str = "ClassPoll+"
    theme_color: str = "indigo"
