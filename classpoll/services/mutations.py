"""
Mutation Coordinator: every create/update/delete goes local first, then remote.
  1. build the full entity (new uuid4 id for creates);
  2. apply it to the DomainState synchronously;
  3. schedule the remote write as a fire-and-forget task on the running loop.
A failed remote write is logged and counted in metrics; the local change is never rolled back
and the caller never sees the error. Writes are not queued or retried (last write wins).
Must be called from inside the event loop.
"""
import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from classpoll import metrics
from classpoll.config import settings
from classpoll.models import (
    Announcement,
    ClassGroup,
    Exam,
    Poll,
    PollOption,
    Resource,
    SchoolSettings,
    User,
)
from classpoll.models.types import EntityKind, utcnow
from classpoll.schemas.announcement import AnnouncementCreate
from classpoll.schemas.exam import ExamCreate
from classpoll.schemas.poll import PollCreate
from classpoll.schemas.resource import ResourceCreate
from classpoll.schemas.school import SchoolSettingsUpdate
from classpoll.schemas.user import UserCreate, UserUpdate
from classpoll.services.auth import secret_for_storage
from classpoll.services.session_store import SessionStore
from classpoll.services.state import DomainState
from classpoll.store.base import StoreError
from classpoll.store.gateway import SyncGateway

logger = logging.getLogger(__name__)

_USER_FIELDS = ("name", "email", "role", "password", "class_group")
_VOTE_FIELDS = ("options", "voter_ids")


class MutationRejected(ValueError):
    """A guarded operation was refused before any state change."""


class ProtectedAccountError(MutationRejected):
    pass


class DuplicateEmailError(MutationRejected):
    pass


class DuplicateClassGroupError(MutationRejected):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


class MutationCoordinator:
    """Optimistic local apply + fire-and-forget remote persist for every collection."""

    def __init__(
        self,
        state: DomainState,
        gateway: SyncGateway,
        session: SessionStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._state = state
        self._gateway = gateway
        self._session = session
        self._clock = clock
        self._pending: set[asyncio.Task] = set()
        # (viewer id, poll id) pairs allowed one more vote; a view-level mode, never persisted
        self._vote_changes: set[tuple[str, str]] = set()

    @property
    def viewer(self) -> User | None:
        return self._session.current

    # Remote side

    def _persist(self, action: str, write: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(self._run_write(action, write))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_write(self, action: str, write: Awaitable[None]) -> None:
        try:
            await write
        except StoreError as e:
            total = metrics.increment_remote_write_failures_total()
            logger.warning("Remote write failed (%s), local state kept: %s [failures=%s]", action, e, total)
        except Exception:
            metrics.increment_remote_write_failures_total()
            logger.exception("Remote write crashed (%s), local state kept", action)
        else:
            logger.debug("Remote write ok (%s)", action)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled remote write to finish (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # Announcements

    def add_announcement(self, data: AnnouncementCreate) -> Announcement | None:
        viewer = self.viewer
        if viewer is None:
            return None
        ann = Announcement(id=new_id(), author_id=viewer.id, author_name=viewer.name, **data.model_dump())
        self._state.prepend(EntityKind.ANNOUNCEMENTS, ann)
        self._persist(f"insert announcement {ann.id}", self._gateway.announcements.insert(ann))
        return ann

    def delete_announcement(self, announcement_id: str) -> bool:
        return self._delete(EntityKind.ANNOUNCEMENTS, announcement_id)

    # Exams

    def add_exam(self, data: ExamCreate) -> Exam | None:
        viewer = self.viewer
        if viewer is None:
            return None
        exam = Exam(id=new_id(), created_by_id=viewer.id, **data.model_dump())
        self._state.append(EntityKind.EXAMS, exam)
        self._persist(f"insert exam {exam.id}", self._gateway.exams.insert(exam))
        return exam

    def delete_exam(self, exam_id: str) -> bool:
        return self._delete(EntityKind.EXAMS, exam_id)

    # Polls

    def add_poll(self, data: PollCreate) -> Poll | None:
        viewer = self.viewer
        if viewer is None:
            return None
        now = self._clock()
        options = tuple(
            PollOption(id=f"opt-{uuid.uuid4().hex[:12]}-{idx}", label=label, votes=0)
            for idx, label in enumerate(data.options)
        )
        poll = Poll(
            id=new_id(),
            title=data.title,
            description=data.description,
            options=options,
            is_anonymous=data.is_anonymous,
            created_at=now,
            expires_at=data.expires_at or now + timedelta(days=settings.poll_default_lifetime_days),
            created_by_id=viewer.id,
            voter_ids=(),
            target_class=data.target_class,
        )
        self._state.prepend(EntityKind.POLLS, poll)
        self._persist(f"insert poll {poll.id}", self._gateway.polls.insert(poll))
        return poll

    def begin_vote_change(self, poll_id: str) -> bool:
        """Allow the viewer exactly one more vote on a poll they already voted on."""
        viewer = self.viewer
        poll = self._state.get(EntityKind.POLLS, poll_id)
        if viewer is None or poll is None or not poll.has_voted(viewer.id):
            return False
        self._vote_changes.add((viewer.id, poll_id))
        return True

    def cancel_vote_change(self, poll_id: str) -> None:
        viewer = self.viewer
        if viewer is not None:
            self._vote_changes.discard((viewer.id, poll_id))

    def is_changing_vote(self, poll_id: str) -> bool:
        viewer = self.viewer
        return viewer is not None and (viewer.id, poll_id) in self._vote_changes

    def vote_poll(self, poll_id: str, option_id: str) -> Poll | None:
        """
        Count the viewer's vote for option_id. None (no change) if the poll or option is unknown,
        or if the viewer already voted and is not changing their vote.
        A changed vote adds an increment to the new option; the earlier one is not taken back
        (only the voter set is recorded, not who chose what).
        """
        viewer = self.viewer
        if viewer is None:
            return None
        poll = self._state.get(EntityKind.POLLS, poll_id)
        if poll is None or poll.option(option_id) is None:
            return None
        key = (viewer.id, poll_id)
        if poll.has_voted(viewer.id) and key not in self._vote_changes:
            return None
        self._vote_changes.discard(key)

        options = tuple(
            o.model_copy(update={"votes": o.votes + 1}) if o.id == option_id else o
            for o in poll.options
        )
        voter_ids = poll.voter_ids if poll.has_voted(viewer.id) else poll.voter_ids + (viewer.id,)
        updated = poll.model_copy(update={"options": options, "voter_ids": voter_ids})
        self._state.replace_entity(EntityKind.POLLS, updated)
        self._persist(f"vote poll {poll_id}", self._gateway.polls.update(updated, _VOTE_FIELDS))
        return updated

    def delete_poll(self, poll_id: str) -> bool:
        self._vote_changes = {k for k in self._vote_changes if k[1] != poll_id}
        return self._delete(EntityKind.POLLS, poll_id)

    # Resources

    def add_resource(self, data: ResourceCreate) -> Resource:
        resource = Resource(id=new_id(), created_at=self._clock(), **data.model_dump())
        self._state.prepend(EntityKind.RESOURCES, resource)
        self._persist(f"insert resource {resource.id}", self._gateway.resources.insert(resource))
        return resource

    def delete_resource(self, resource_id: str) -> bool:
        return self._delete(EntityKind.RESOURCES, resource_id)

    # Users

    def _check_email_free(self, email: str, except_id: str | None = None) -> None:
        if any(u.has_email(email) and u.id != except_id for u in self._state.users):
            raise DuplicateEmailError(f"Email already registered: {email}")

    def add_user(self, data: UserCreate) -> User:
        self._check_email_free(data.email)
        user = User(
            id=new_id(),
            name=data.name,
            email=data.email,
            role=data.role,
            password=secret_for_storage(data.password or settings.default_password),
            class_group=data.class_group,
        )
        self._state.append(EntityKind.USERS, user)
        self._persist(f"insert user {user.id}", self._gateway.users.insert(user))
        return user

    def update_user(self, user_id: str, data: UserUpdate) -> User | None:
        """Replace the editable fields. Editing yourself refreshes the stored session too."""
        existing = self._state.get(EntityKind.USERS, user_id)
        if existing is None:
            return None
        self._check_email_free(data.email, except_id=user_id)
        updated = User(
            id=existing.id,
            name=data.name,
            email=data.email,
            role=data.role,
            password=secret_for_storage(data.password) if data.password else existing.password,
            class_group=data.class_group,
        )
        self._state.replace_entity(EntityKind.USERS, updated)
        viewer = self.viewer
        if viewer is not None and viewer.id == updated.id:
            self._session.persist(updated)
        self._persist(f"update user {user_id}", self._gateway.users.update(updated, _USER_FIELDS))
        return updated

    def delete_user(self, user_id: str) -> bool:
        """Remove a user. The seed administrator (protected email) can never be removed."""
        target = self._state.get(EntityKind.USERS, user_id)
        if target is None:
            return False
        if target.has_email(settings.seed_admin_email):
            logger.info("Refused to delete protected administrator %s", user_id)
            raise ProtectedAccountError("The main administrator account cannot be deleted.")
        return self._delete(EntityKind.USERS, user_id)

    def reset_user_password(self, user_id: str) -> User | None:
        existing = self._state.get(EntityKind.USERS, user_id)
        if existing is None:
            return None
        updated = existing.model_copy(update={"password": secret_for_storage(settings.default_password)})
        self._state.replace_entity(EntityKind.USERS, updated)
        self._persist(f"reset password {user_id}", self._gateway.users.update(updated, ("password",)))
        return updated

    # School settings and class groups

    def update_settings(self, data: SchoolSettingsUpdate) -> SchoolSettings:
        school = SchoolSettings(school_name=data.school_name, theme_color=data.theme_color)
        self._state.settings = school
        logger.info("Application title is now %r", school.school_name)
        self._persist("upsert school settings", self._gateway.settings.upsert(school))
        return school

    def add_class_group(self, name: str) -> ClassGroup:
        name = (name or "").strip()
        if not name:
            raise MutationRejected("Class group name is required")
        if any(g.name.lower() == name.lower() for g in self._state.class_groups):
            raise DuplicateClassGroupError(f"Class group already exists: {name}")
        group = ClassGroup(id=new_id(), name=name)
        self._state.append(EntityKind.CLASS_GROUPS, group)
        self._persist(f"insert class group {group.id}", self._gateway.class_groups.insert(group))
        return group

    def delete_class_group(self, group_id: str) -> bool:
        """Entities still targeting the group's name keep it (no cascade)."""
        return self._delete(EntityKind.CLASS_GROUPS, group_id)

    def _delete(self, kind: EntityKind, entity_id: str) -> bool:
        if self._state.get(kind, entity_id) is None:
            return False
        self._state.remove(kind, entity_id)
        self._persist(f"delete {kind.value} {entity_id}", self._gateway.for_kind(kind).delete(entity_id))
        return True
