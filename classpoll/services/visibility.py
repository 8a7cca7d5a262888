"""
Visibility Filter: which target-scoped entities (announcements, exams, polls, resources) a viewer sees.
Admins and class delegates see everything; students see school-wide items and their own class.
Users and class groups are never filtered here; those views are gated by role instead.
"""
from typing import Iterable, TypeVar

from classpoll.models import User, UserRole
from classpoll.models.types import TargetScoped

T = TypeVar("T", bound=TargetScoped)

_UNRESTRICTED_ROLES = (UserRole.ADMIN, UserRole.RESPONSIBLE)


def sees_everything(viewer: User | None) -> bool:
    return viewer is None or viewer.role in _UNRESTRICTED_ROLES


def is_visible(viewer: User | None, item: TargetScoped) -> bool:
    if sees_everything(viewer):
        return True
    return item.target_class is None or item.target_class == viewer.class_group


def visible_to(viewer: User | None, items: Iterable[T]) -> tuple[T, ...]:
    """items narrowed to what viewer may see; unchanged for unrestricted viewers."""
    items = tuple(items)
    if sees_everything(viewer):
        return items
    return tuple(i for i in items if is_visible(viewer, i))
