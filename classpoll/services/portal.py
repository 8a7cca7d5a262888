"""
Portal: one object per process wiring the cache, the session, the gateway and the coordinator.
The HTTP layer only talks to this.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from classpoll.models import Announcement, AppNotification, Exam, Poll, Resource, User
from classpoll.models.types import utcnow
from classpoll.schemas.dashboard import DashboardResponse
from classpoll.services.auth import authenticate
from classpoll.services.dashboard import build_dashboard
from classpoll.services.loader import DataUnavailableError, load_snapshot
from classpoll.services.mutations import MutationCoordinator
from classpoll.services.notifications import derive_notifications
from classpoll.services.session_store import SessionStore
from classpoll.services.state import DomainState, LoadStatus
from classpoll.services.visibility import visible_to
from classpoll.store.gateway import SyncGateway

logger = logging.getLogger(__name__)


class Portal:
    def __init__(self, gateway: SyncGateway, session_factory: sessionmaker | None = None) -> None:
        self.gateway = gateway
        self.state = DomainState()
        self.session = SessionStore(self.state, session_factory=session_factory)
        self.mutations = MutationCoordinator(self.state, gateway, self.session)

    async def load(self) -> LoadStatus:
        """
        Full (re)load. On success the snapshot replaces the cache and the stored session is
        re-validated against the fresh users. A fatal first load marks the portal UNAVAILABLE.
        A fatal reload of a READY portal keeps the previous cache and status and re-raises
        DataUnavailableError so the caller can report it.
        """
        first_load = self.state.status != LoadStatus.READY
        if first_load:
            self.state.status = LoadStatus.LOADING
        try:
            snapshot = await load_snapshot(self.gateway)
        except DataUnavailableError as e:
            if not first_load:
                logger.warning("Reload failed, keeping previous data: %s", e)
                raise
            logger.error("Initial data load failed: %s", e)
            self.state.mark_unavailable(str(e))
            return self.state.status
        self.state.apply_snapshot(snapshot)
        self.session.restore()
        return self.state.status

    @property
    def viewer(self) -> User | None:
        return self.session.current

    @property
    def title(self) -> str:
        return self.state.settings.school_name

    def login(self, email: str, password: str) -> User:
        """Raises AuthenticationError on a bad pair."""
        user = authenticate(self.state.users, email, password)
        self.session.persist(user)
        logger.info("User %s logged in", user.id)
        return user

    def logout(self) -> None:
        self.session.clear()

    # Viewer-scoped reads

    def announcements(self) -> tuple[Announcement, ...]:
        return visible_to(self.viewer, self.state.announcements)

    def exams(self) -> tuple[Exam, ...]:
        return visible_to(self.viewer, self.state.exams)

    def polls(self) -> tuple[Poll, ...]:
        return visible_to(self.viewer, self.state.polls)

    def resources(self) -> tuple[Resource, ...]:
        return visible_to(self.viewer, self.state.resources)

    def notifications(self, now: datetime | None = None) -> list[AppNotification]:
        return derive_notifications(
            now or utcnow(),
            self.viewer,
            self.state.announcements,
            self.state.exams,
            self.state.polls,
            self.state.resources,
        )

    def dashboard(self, now: datetime | None = None) -> DashboardResponse:
        now = now or utcnow()
        return build_dashboard(
            now,
            self.title,
            self.state.users,
            self.announcements(),
            self.exams(),
            self.polls(),
            self.resources(),
            self.notifications(now),
        )

    async def aclose(self) -> None:
        await self.mutations.drain()
        await self.gateway.aclose()
