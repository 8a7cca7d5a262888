"""
Derived notification. Never persisted; recomputed from the visible collections and the clock.
id is "{source prefix}-{entity id}", stable across recomputations.
"""
from typing import Literal

from classpoll.models.types import DomainModel, UtcDateTime, ViewTarget

NotificationCategory = Literal["alert", "info", "success"]


class AppNotification(DomainModel):
    id: str
    category: NotificationCategory
    title: str
    message: str
    link_to: ViewTarget
    timestamp: UtcDateTime
