"""
Resource request schemas.
"""
from pydantic import BaseModel

from classpoll.models import ResourceKind
from classpoll.schemas.common import OptionalText, Text


class ResourceCreate(BaseModel):
    title: Text
    kind: ResourceKind = ResourceKind.LINK
    content: Text  # URL for LINK/FILE, author or reference for BOOK
    description: OptionalText = None
    subject: Text
    target_class: OptionalText = None
