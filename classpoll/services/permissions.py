"""
Role checks applied at the HTTP boundary before calling the Mutation Coordinator.
"""
from classpoll.models import User, UserRole
from classpoll.models.types import TargetScoped

PUBLISHER_ROLES = (UserRole.ADMIN, UserRole.RESPONSIBLE)
VOTER_ROLES = (UserRole.STUDENT, UserRole.RESPONSIBLE)


def can_publish(viewer: User) -> bool:
    """Create announcements, exams, polls and resources."""
    return viewer.role in PUBLISHER_ROLES


def can_target(viewer: User, target_class: str | None) -> bool:
    """Admins may address the whole school or any class; delegates only their own class."""
    if viewer.role == UserRole.ADMIN:
        return True
    return viewer.role == UserRole.RESPONSIBLE and target_class is not None and target_class == viewer.class_group


def can_delete(viewer: User, item: TargetScoped, owner_id: str | None = None) -> bool:
    """Admin, the delegate of the item's class, or the item's author."""
    if viewer.role == UserRole.ADMIN:
        return True
    if viewer.role == UserRole.RESPONSIBLE and item.target_class is not None and item.target_class == viewer.class_group:
        return True
    return owner_id is not None and owner_id == viewer.id


def can_vote(viewer: User) -> bool:
    return viewer.role in VOTER_ROLES


def can_manage_school(viewer: User) -> bool:
    """Users, school settings and class groups."""
    return viewer.role == UserRole.ADMIN
