"""
Full load of the remote dataset into a Snapshot.
users, announcements, exams and polls are required: any failure raises DataUnavailableError.
resources may be unprovisioned (missing table -> empty); class groups and settings fall back to defaults.
An empty users table gets the seed administrator, which is part of the snapshot even if the insert fails.
"""
import logging

from classpoll.config import settings
from classpoll.models import User, UserRole
from classpoll.services.state import Snapshot, default_school_settings
from classpoll.store.base import StoreError
from classpoll.store.gateway import EntityGateway, SyncGateway

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Database connection error. Make sure the SQL setup script has been run on the store."


class DataUnavailableError(Exception):
    """A required collection could not be loaded; the portal must not be used."""


def seed_admin() -> User:
    """Default administrator so a fresh store is reachable."""
    return User(
        id=settings.seed_admin_id,
        name=settings.seed_admin_name,
        email=settings.seed_admin_email,
        password=settings.default_password,
        role=UserRole.ADMIN,
    )


async def _load_required(gateway: EntityGateway) -> list:
    try:
        return await gateway.load_all()
    except StoreError as e:
        logger.error("Load of %s failed: %s", gateway.table, e)
        raise DataUnavailableError(f"{UNAVAILABLE_MESSAGE} ({gateway.table}: {e})") from e


async def _load_users(gateway: SyncGateway) -> list[User]:
    users = await _load_required(gateway.users)
    if users:
        return users
    admin = seed_admin()
    try:
        await gateway.users.insert(admin)
        logger.info("Users table empty: seed administrator %s created", admin.email)
    except StoreError as e:
        # The session still gets the admin; the store catches up on a later successful write
        logger.error("Failed to insert seed administrator: %s", e)
    return [admin]


async def _load_resources(gateway: SyncGateway) -> list:
    try:
        return await gateway.resources.load_all()
    except StoreError as e:
        if e.table_missing:
            logger.warning("Resources table not provisioned; treating resources as empty")
            return []
        logger.error("Load of resources failed: %s", e)
        raise DataUnavailableError(f"{UNAVAILABLE_MESSAGE} (resources: {e})") from e


async def load_snapshot(gateway: SyncGateway) -> Snapshot:
    """Read every collection once. Independent of any previous load; safe to run concurrently."""
    school = default_school_settings()
    try:
        loaded = await gateway.settings.load()
        if loaded is not None:
            school = loaded
    except StoreError as e:
        logger.warning("School settings unavailable, using defaults: %s", e)

    class_groups: list = []
    try:
        class_groups = await gateway.class_groups.load_all()
    except StoreError as e:
        logger.warning("Class groups unavailable, using none: %s", e)

    users = await _load_users(gateway)
    announcements = await _load_required(gateway.announcements)
    exams = await _load_required(gateway.exams)
    polls = await _load_required(gateway.polls)
    resources = await _load_resources(gateway)

    return Snapshot(
        users=tuple(users),
        class_groups=tuple(class_groups),
        announcements=tuple(announcements),
        exams=tuple(exams),
        polls=tuple(polls),
        resources=tuple(resources),
        settings=school,
    )
