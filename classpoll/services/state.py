"""
Domain State Cache: the in-memory snapshot of every collection plus the settings singleton.
Collections are tuples of frozen models and are only ever replaced whole, so a reader
holding a collection never sees it change underneath.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from classpoll.config import settings as app_settings
from classpoll.models import Announcement, ClassGroup, Exam, Poll, Resource, SchoolSettings, User
from classpoll.models.types import EntityKind

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


def default_school_settings() -> SchoolSettings:
    return SchoolSettings(
        school_name=app_settings.default_school_name,
        theme_color=app_settings.default_theme_color,
    )


@dataclass(frozen=True)
class Snapshot:
    """Result of one full load, assigned into the cache collection by collection."""
    users: tuple[User, ...] = ()
    class_groups: tuple[ClassGroup, ...] = ()
    announcements: tuple[Announcement, ...] = ()
    exams: tuple[Exam, ...] = ()
    polls: tuple[Poll, ...] = ()
    resources: tuple[Resource, ...] = ()
    settings: SchoolSettings = field(default_factory=default_school_settings)


class DomainState:
    """Owned, explicitly passed store of the current dataset."""

    def __init__(self) -> None:
        self._collections: dict[EntityKind, tuple] = {kind: () for kind in EntityKind}
        self.settings: SchoolSettings = default_school_settings()
        self.status: LoadStatus = LoadStatus.LOADING
        self.load_error: str | None = None

    # Read side

    def all(self, kind: EntityKind) -> tuple:
        return self._collections[kind]

    def get(self, kind: EntityKind, entity_id: str):
        return next((e for e in self._collections[kind] if e.id == entity_id), None)

    @property
    def users(self) -> tuple[User, ...]:
        return self._collections[EntityKind.USERS]

    @property
    def class_groups(self) -> tuple[ClassGroup, ...]:
        return self._collections[EntityKind.CLASS_GROUPS]

    @property
    def announcements(self) -> tuple[Announcement, ...]:
        return self._collections[EntityKind.ANNOUNCEMENTS]

    @property
    def exams(self) -> tuple[Exam, ...]:
        return self._collections[EntityKind.EXAMS]

    @property
    def polls(self) -> tuple[Poll, ...]:
        return self._collections[EntityKind.POLLS]

    @property
    def resources(self) -> tuple[Resource, ...]:
        return self._collections[EntityKind.RESOURCES]

    @property
    def is_ready(self) -> bool:
        return self.status == LoadStatus.READY

    # Write side: whole-collection replacement only

    def replace(self, kind: EntityKind, items: Iterable) -> None:
        self._collections[kind] = tuple(items)

    def prepend(self, kind: EntityKind, entity) -> None:
        self._collections[kind] = (entity,) + self._collections[kind]

    def append(self, kind: EntityKind, entity) -> None:
        self._collections[kind] = self._collections[kind] + (entity,)

    def replace_entity(self, kind: EntityKind, entity) -> None:
        """Swap the entity with the same id; no-op when absent."""
        self._collections[kind] = tuple(entity if e.id == entity.id else e for e in self._collections[kind])

    def remove(self, kind: EntityKind, entity_id: str) -> None:
        self._collections[kind] = tuple(e for e in self._collections[kind] if e.id != entity_id)

    def apply_snapshot(self, snapshot: Snapshot) -> None:
        self.settings = snapshot.settings
        self.replace(EntityKind.CLASS_GROUPS, snapshot.class_groups)
        self.replace(EntityKind.USERS, snapshot.users)
        self.replace(EntityKind.ANNOUNCEMENTS, snapshot.announcements)
        self.replace(EntityKind.EXAMS, snapshot.exams)
        self.replace(EntityKind.POLLS, snapshot.polls)
        self.replace(EntityKind.RESOURCES, snapshot.resources)
        self.status = LoadStatus.READY
        self.load_error = None
        logger.info(
            "Snapshot applied: users=%s classes=%s announcements=%s exams=%s polls=%s resources=%s",
            len(snapshot.users), len(snapshot.class_groups), len(snapshot.announcements),
            len(snapshot.exams), len(snapshot.polls), len(snapshot.resources),
        )

    def mark_unavailable(self, reason: str) -> None:
        self.status = LoadStatus.UNAVAILABLE
        self.load_error = reason
