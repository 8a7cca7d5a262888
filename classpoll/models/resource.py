"""
Resource listing. content is a URL for LINK/FILE, an author/reference for BOOK.
"""
from classpoll.models.types import ResourceKind, TargetScoped, UtcDateTime


class Resource(TargetScoped):
    id: str
    title: str
    kind: ResourceKind
    content: str
    description: str | None = None
    subject: str
    created_at: UtcDateTime
