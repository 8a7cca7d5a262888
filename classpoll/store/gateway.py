"""
Remote Sync Gateway: one EntityGateway per collection over a RemoteStore.
Owns the wire <-> domain translation: column renames (FieldMap) and value coercion
(ISO strings <-> aware datetimes, enums <-> values) via the pydantic models.
The cache and everything above it only ever see domain models.
"""
import logging
from dataclasses import dataclass, field
from typing import Generic, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from classpoll.config import settings
from classpoll.models import (
    Announcement,
    ClassGroup,
    Exam,
    Poll,
    Resource,
    SchoolSettings,
    User,
)
from classpoll.models.types import EntityKind
from classpoll.store.base import RemoteStore, Row

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

SETTINGS_TABLE = "school_settings"


@dataclass(frozen=True)
class FieldMap:
    """Domain field name -> wire column name. nested maps apply to list-of-object fields."""

    renames: dict[str, str] = field(default_factory=dict)
    nested: dict[str, "FieldMap"] = field(default_factory=dict)

    def to_wire(self, data: dict) -> Row:
        out: Row = {}
        for name, value in data.items():
            sub = self.nested.get(name)
            if sub is not None and isinstance(value, list):
                value = [sub.to_wire(v) if isinstance(v, dict) else v for v in value]
            out[self.renames.get(name, name)] = value
        return out

    def to_domain(self, row: Row) -> dict:
        inverse = {wire: name for name, wire in self.renames.items()}
        out: dict = {}
        for wire_name, value in row.items():
            name = inverse.get(wire_name, wire_name)
            sub = self.nested.get(name)
            if sub is not None and isinstance(value, list):
                value = [sub.to_domain(v) if isinstance(v, dict) else v for v in value]
            out[name] = value
        return out


POLL_FIELDS = FieldMap(
    renames={"voter_ids": "voted_user_ids"},
    nested={"options": FieldMap(renames={"label": "text"})},
)
RESOURCE_FIELDS = FieldMap(renames={"kind": "type"})


class EntityGateway(Generic[T]):
    """load_all / insert / update / upsert / delete for one table, in domain terms."""

    def __init__(
        self,
        store: RemoteStore,
        table: str,
        model: type[T],
        field_map: FieldMap | None = None,
        order: str | None = None,
    ) -> None:
        self._store = store
        self.table = table
        self.model = model
        self.field_map = field_map or FieldMap()
        self._order = order

    def encode(self, entity: T, fields: Iterable[str] | None = None) -> Row:
        include = set(fields) if fields is not None else None
        return self.field_map.to_wire(entity.model_dump(mode="json", include=include))

    def decode(self, row: Row) -> T:
        return self.model.model_validate(self.field_map.to_domain(row))

    async def load_all(self) -> list[T]:
        """All rows as domain models. Rows that do not decode are skipped with a warning."""
        rows = await self._store.select_all(self.table, order=self._order)
        out: list[T] = []
        for row in rows:
            try:
                out.append(self.decode(row))
            except ValidationError as e:
                logger.warning("Skipping malformed %s row id=%s: %s", self.table, row.get("id"), e.errors()[:3])
        return out

    async def insert(self, entity: T) -> None:
        await self._store.insert(self.table, self.encode(entity))

    async def update(self, entity: T, fields: Iterable[str]) -> None:
        """Write only the named domain fields of entity to the row with its id."""
        fields = [f for f in fields if f != "id"]
        await self._store.update(self.table, self.encode(entity, fields), entity.id)

    async def upsert(self, entity: T) -> None:
        await self._store.upsert(self.table, self.encode(entity))

    async def delete(self, entity_id: str) -> None:
        await self._store.delete(self.table, entity_id)


class SettingsGateway:
    """The school_settings singleton: a single row under a fixed id."""

    def __init__(self, store: RemoteStore, row_id: str | None = None) -> None:
        self._store = store
        self.table = SETTINGS_TABLE
        self.row_id = row_id or settings.settings_row_id

    async def load(self) -> SchoolSettings | None:
        row = await self._store.select_single(self.table)
        if not row:
            return None
        # Blank columns fall back to the defaults, like an unconfigured school
        defaults = SchoolSettings(
            school_name=settings.default_school_name,
            theme_color=settings.default_theme_color,
        )
        return SchoolSettings(
            school_name=row.get("school_name") or defaults.school_name,
            theme_color=row.get("theme_color") or defaults.theme_color,
        )

    async def upsert(self, school: SchoolSettings) -> None:
        await self._store.upsert(self.table, {"id": self.row_id, **school.model_dump(mode="json")})


class SyncGateway:
    """Every collection of the remote store, in domain terms."""

    def __init__(self, store: RemoteStore) -> None:
        self.store = store
        self.users: EntityGateway[User] = EntityGateway(store, EntityKind.USERS.value, User)
        self.class_groups: EntityGateway[ClassGroup] = EntityGateway(
            store, EntityKind.CLASS_GROUPS.value, ClassGroup, order="name"
        )
        self.announcements: EntityGateway[Announcement] = EntityGateway(
            store, EntityKind.ANNOUNCEMENTS.value, Announcement
        )
        self.exams: EntityGateway[Exam] = EntityGateway(store, EntityKind.EXAMS.value, Exam)
        self.polls: EntityGateway[Poll] = EntityGateway(store, EntityKind.POLLS.value, Poll, POLL_FIELDS)
        self.resources: EntityGateway[Resource] = EntityGateway(
            store, EntityKind.RESOURCES.value, Resource, RESOURCE_FIELDS
        )
        self.settings = SettingsGateway(store)

    def for_kind(self, kind: EntityKind) -> EntityGateway:
        return {
            EntityKind.USERS: self.users,
            EntityKind.CLASS_GROUPS: self.class_groups,
            EntityKind.ANNOUNCEMENTS: self.announcements,
            EntityKind.EXAMS: self.exams,
            EntityKind.POLLS: self.polls,
            EntityKind.RESOURCES: self.resources,
        }[kind]

    async def aclose(self) -> None:
        await self.store.aclose()
