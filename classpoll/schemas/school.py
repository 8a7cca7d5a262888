"""
School settings and class group schemas.
"""
from pydantic import BaseModel

from classpoll.schemas.common import Text


class SchoolSettingsUpdate(BaseModel):
    school_name: Text
    theme_color: Text = "indigo"


class ClassGroupCreate(BaseModel):
    name: Text
