"""
Initial load: required vs tolerated collections, seed administrator, settings fallback.
"""
import pytest

from classpoll.models import UserRole
from classpoll.services.loader import DataUnavailableError, load_snapshot
from classpoll.services.portal import Portal
from classpoll.services.state import LoadStatus
from classpoll.store.gateway import SyncGateway
from classpoll.store.memory_impl import MemoryStore


async def test_empty_users_get_seed_admin():
    store = MemoryStore()
    snapshot = await load_snapshot(SyncGateway(store))

    assert len(snapshot.users) == 1
    admin = snapshot.users[0]
    assert admin.role == UserRole.ADMIN
    assert admin.email == "faye@eco.com"
    assert [r["id"] for r in store.rows("users")] == ["admin-init"]


async def test_seed_admin_kept_when_insert_fails():
    store = MemoryStore()
    store.fail("insert", "users")
    snapshot = await load_snapshot(SyncGateway(store))

    assert [u.id for u in snapshot.users] == ["admin-init"]
    assert snapshot.users[0].role == UserRole.ADMIN
    assert store.rows("users") == []


async def test_missing_resources_table_is_empty():
    store = MemoryStore(missing_tables={"resources"})
    snapshot = await load_snapshot(SyncGateway(store))
    assert snapshot.resources == ()


@pytest.mark.parametrize("table", ["users", "announcements", "exams", "polls"])
async def test_required_collection_failure_is_fatal(table):
    store = MemoryStore()
    store.fail("select", table)
    with pytest.raises(DataUnavailableError):
        await load_snapshot(SyncGateway(store))


async def test_other_resources_failure_is_fatal():
    store = MemoryStore()
    store.fail("select", "resources")
    with pytest.raises(DataUnavailableError):
        await load_snapshot(SyncGateway(store))


async def test_settings_and_class_groups_fall_back():
    store = MemoryStore()
    store.fail("select_single", "school_settings")
    store.fail("select", "class_groups")
    snapshot = await load_snapshot(SyncGateway(store))
    assert snapshot.settings.school_name == "ClassPoll+"
    assert snapshot.settings.theme_color == "indigo"
    assert snapshot.class_groups == ()


async def test_stored_settings_and_row_renames():
    store = MemoryStore(tables={
        "school_settings": [{"id": "config", "school_name": "Lycée Kennedy", "theme_color": ""}],
        "polls": [{
            "id": "p1", "title": "Sortie", "created_at": "2025-03-01T10:00:00+00:00",
            "expires_at": "2025-03-08T10:00:00+00:00", "created_by_id": "resp-a",
            "options": [{"id": "o1", "text": "Oui", "votes": 2}], "voted_user_ids": ["a", "b"],
            "target_class": "",
        }],
        "resources": [
            {"id": "r1", "title": "Cours", "type": "BOOK", "content": "Hatier", "subject": "Math",
             "created_at": "2025-03-01T10:00:00Z"},
            {"id": "bad", "title": "No subject", "type": "LINK"},
        ],
    })
    snapshot = await load_snapshot(SyncGateway(store))

    assert snapshot.settings.school_name == "Lycée Kennedy"
    assert snapshot.settings.theme_color == "indigo"
    poll = snapshot.polls[0]
    assert poll.options[0].label == "Oui"
    assert poll.voter_ids == ("a", "b")
    assert poll.target_class is None
    assert poll.created_at.tzinfo is not None
    # malformed rows are skipped
    assert [r.id for r in snapshot.resources] == ["r1"]
    assert snapshot.resources[0].kind.value == "BOOK"


async def test_portal_load_failure_marks_unavailable(session_factory):
    store = MemoryStore()
    store.fail("select", "exams")
    portal = Portal(SyncGateway(store), session_factory=session_factory)

    assert await portal.load() == LoadStatus.UNAVAILABLE
    assert "exams" in portal.state.load_error


async def test_failed_reload_keeps_previous_data(portal, store):
    before = portal.state.users
    store.fail("select", "exams")

    with pytest.raises(DataUnavailableError):
        await portal.load()
    assert portal.state.status == LoadStatus.READY
    assert portal.state.load_error is None
    assert portal.state.users == before

    store.failures.clear()
    assert await portal.load() == LoadStatus.READY
