"""
HTTP surface: load gating, login, permissions at the boundary, voting and derived views.
Runs the app in-process over httpx.ASGITransport with a Portal on the in-memory store (no startup event).
"""
from datetime import timedelta

import httpx
import pytest

from classpoll.api.polls import get_drafter
from classpoll.llm.base import PollDraft
from classpoll.main import app
from classpoll.models.types import utcnow
from classpoll.services.portal import Portal
from classpoll.store.gateway import SyncGateway
from classpoll.store.memory_impl import MemoryStore


class FakeDrafter:
    def __init__(self, proposal: PollDraft | None):
        self.proposal = proposal
        self.calls = []

    async def draft_poll(self, topic, difficulty):
        self.calls.append((topic, difficulty))
        return self.proposal


async def _client_for(p: Portal):
    app.state.portal = p
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def client(portal):
    c = await _client_for(portal)
    async with c:
        yield c
    app.state.portal = None
    app.dependency_overrides.clear()


async def _login(client, email, password="secret"):
    r = await client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


async def test_unavailable_store_blocks_everything_but_health(session_factory):
    store = MemoryStore()
    store.fail("select", "polls")
    p = Portal(SyncGateway(store), session_factory=session_factory)
    await p.load()
    c = await _client_for(p)
    async with c:
        r = await c.post("/auth/login", json={"email": "faye@eco.com", "password": "passer25"})
        assert r.status_code == 503
        assert "SQL setup script" in r.json()["detail"]
        health = await c.get("/health")
        assert health.status_code == 200
        assert health.json()["status"] == "unavailable"
    app.state.portal = None


async def test_login_logout_me(client):
    r = await client.post("/auth/login", json={"email": "FAYE@eco.com", "password": "passer25"})
    assert r.status_code == 200
    assert r.json()["role"] == "ADMIN"
    assert "password" not in r.json()

    me = await client.get("/auth/me")
    assert me.json()["id"] == "admin-init"

    assert (await client.post("/auth/logout")).status_code == 204
    assert (await client.get("/auth/me")).status_code == 401


async def test_bad_password_is_401(client):
    r = await client.post("/auth/login", json={"email": "faye@eco.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid email or password"


async def test_long_bad_password_is_401(client):
    r = await client.post("/auth/login", json={"email": "faye@eco.com", "password": "x" * 100})
    assert r.status_code == 401


async def test_content_requires_viewer(client):
    assert (await client.get("/announcements")).status_code == 401


async def test_publish_permissions(client):
    body = {"title": "Sortie", "subject": "History", "date": "2030-01-10T08:00:00Z"}

    await _login(client, "stu-a@lycee.sn")
    assert (await client.post("/announcements", json={**body, "target_class": "6A"})).status_code == 403

    await _login(client, "resp-a@lycee.sn")
    assert (await client.post("/announcements", json=body)).status_code == 403
    assert (await client.post("/announcements", json={**body, "target_class": "6B"})).status_code == 403
    r = await client.post("/announcements", json={**body, "target_class": "6A"})
    assert r.status_code == 201
    assert r.json()["author_id"] == "resp-a"

    await _login(client, "faye@eco.com", "passer25")
    assert (await client.post("/announcements", json=body)).status_code == 201


async def test_student_sees_only_own_class(client):
    await _login(client, "faye@eco.com", "passer25")
    exam = {"subject": "Math", "date": "2030-01-10T08:00:00Z", "start_time": "08:00", "room": "B12"}
    await client.post("/exams", json={**exam, "target_class": "6A"})
    await client.post("/exams", json={**exam, "target_class": "6B"})
    await client.post("/exams", json=exam)

    await _login(client, "stu-b@lycee.sn")
    targets = [e["target_class"] for e in (await client.get("/exams")).json()]
    assert sorted(targets, key=str) == sorted(["6B", None], key=str)


async def test_invalid_exam_time_is_422(client):
    await _login(client, "faye@eco.com", "passer25")
    r = await client.post("/exams", json={"subject": "Math", "date": "2030-01-10T08:00:00Z", "start_time": "25:00", "room": "B12"})
    assert r.status_code == 422


async def test_vote_flow(client):
    await _login(client, "resp-a@lycee.sn")
    r = await client.post("/polls", json={"title": "Sortie?", "options": ["A", "B"], "target_class": "6A"})
    assert r.status_code == 201
    poll = r.json()
    option_a, option_b = poll["options"][0]["id"], poll["options"][1]["id"]

    await _login(client, "stu-a@lycee.sn")
    r = await client.post(f"/polls/{poll['id']}/vote", json={"option_id": option_b})
    assert r.status_code == 200
    assert [o["votes"] for o in r.json()["options"]] == [0, 1]
    assert r.json()["voter_ids"] == ["stu-a"]

    again = await client.post(f"/polls/{poll['id']}/vote", json={"option_id": option_a})
    assert again.status_code == 200
    assert again.json() == r.json()

    assert (await client.post(f"/polls/{poll['id']}/change-vote")).status_code == 204
    changed = await client.post(f"/polls/{poll['id']}/vote", json={"option_id": option_a})
    assert [o["votes"] for o in changed.json()["options"]] == [1, 1]

    unknown = await client.post(f"/polls/{poll['id']}/vote", json={"option_id": "nope"})
    assert unknown.status_code == 422

    await _login(client, "stu-b@lycee.sn")
    assert (await client.post(f"/polls/{poll['id']}/vote", json={"option_id": option_a})).status_code == 404


async def test_admin_cannot_vote(client):
    await _login(client, "faye@eco.com", "passer25")
    poll = (await client.post("/polls", json={"title": "Q", "options": ["x", "y"]})).json()
    r = await client.post(f"/polls/{poll['id']}/vote", json={"option_id": poll["options"][0]["id"]})
    assert r.status_code == 403


async def test_change_vote_before_voting_is_409(client):
    await _login(client, "faye@eco.com", "passer25")
    poll = (await client.post("/polls", json={"title": "Q", "options": ["x", "y"]})).json()
    await _login(client, "stu-a@lycee.sn")
    assert (await client.post(f"/polls/{poll['id']}/change-vote")).status_code == 409


async def test_poll_draft(client):
    drafter = FakeDrafter(PollDraft(question="2 + 2?", options=["3", "4"]))
    app.dependency_overrides[get_drafter] = lambda: drafter

    await _login(client, "stu-a@lycee.sn")
    assert (await client.post("/polls/draft", json={"topic": "maths"})).status_code == 403

    await _login(client, "resp-a@lycee.sn")
    r = await client.post("/polls/draft", json={"topic": "maths"})
    assert r.status_code == 200
    assert r.json() == {"proposal": {"question": "2 + 2?", "options": ["3", "4"]}}
    assert drafter.calls == [("maths", "High School")]

    app.dependency_overrides[get_drafter] = lambda: FakeDrafter(None)
    r = await client.post("/polls/draft", json={"topic": "maths", "difficulty": "College"})
    assert r.json() == {"proposal": None}


async def test_user_management(client):
    await _login(client, "resp-a@lycee.sn")
    assert (await client.get("/users")).status_code == 403

    await _login(client, "faye@eco.com", "passer25")
    users = (await client.get("/users")).json()
    assert all("password" not in u for u in users)

    missing_class = {"name": "Awa", "email": "awa@lycee.sn", "role": "ELEVE"}
    assert (await client.post("/users", json=missing_class)).status_code == 422

    r = await client.post("/users", json={**missing_class, "class_group": "6A"})
    assert r.status_code == 201
    new_id = r.json()["id"]
    assert (await client.post("/users", json={**missing_class, "class_group": "6B"})).status_code == 409

    r = await client.put(f"/users/{new_id}", json={"name": "Awa Ndiaye", "email": "awa@lycee.sn", "role": "RESPONSABLE", "class_group": "6A"})
    assert r.json()["role"] == "RESPONSABLE"
    assert (await client.post(f"/users/{new_id}/reset-password")).status_code == 200
    assert (await client.delete(f"/users/{new_id}")).status_code == 204
    assert (await client.delete(f"/users/{new_id}")).status_code == 404


async def test_protected_admin_delete_is_403(client, store):
    await _login(client, "faye@eco.com", "passer25")
    r = await client.delete("/users/admin-init")
    assert r.status_code == 403
    assert ("delete", "users") not in store.calls


async def test_settings_and_class_groups(client):
    await _login(client, "stu-a@lycee.sn")
    assert (await client.put("/settings", json={"school_name": "X"})).status_code == 403

    await _login(client, "faye@eco.com", "passer25")
    r = await client.put("/settings", json={"school_name": "Lycée Lamine Gueye", "theme_color": "rose"})
    assert r.json() == {"school_name": "Lycée Lamine Gueye", "theme_color": "rose"}
    assert (await client.get("/settings")).json()["school_name"] == "Lycée Lamine Gueye"

    assert (await client.post("/class-groups", json={"name": "5C"})).status_code == 201
    assert (await client.post("/class-groups", json={"name": "6A"})).status_code == 409
    names = [g["name"] for g in (await client.get("/class-groups")).json()]
    assert names == ["6A", "6B", "5C"]
    assert (await client.delete("/class-groups/cg-b")).status_code == 204


async def test_dashboard_and_notifications(client):
    await _login(client, "faye@eco.com", "passer25")
    soon = (utcnow() + timedelta(days=3)).isoformat()
    await client.post("/exams", json={"subject": "Physique", "date": soon, "start_time": "10:00", "room": "Labo", "target_class": "6A"})
    await client.post("/polls", json={"title": "Club?", "options": ["oui", "non"], "target_class": "6A"})

    await _login(client, "stu-a@lycee.sn")
    notifications = (await client.get("/notifications")).json()
    assert [n["id"].split("-")[0] for n in notifications] == ["exam", "poll"]
    assert notifications[0]["category"] == "alert"
    assert notifications[0]["link_to"] == "DS"

    dashboard = (await client.get("/dashboard")).json()
    assert dashboard["stats"] == {"students": 2, "polls": 1, "exams": 1, "resources": 0}
    assert dashboard["upcoming_exam"]["subject"] == "Physique"
    assert dashboard["active_poll"]["title"] == "Club?"
    assert dashboard["latest_announcement"] is None
    assert len(dashboard["notifications"]) == 2


async def test_refresh_reloads(client, store):
    await _login(client, "faye@eco.com", "passer25")
    await store.insert("resources", {
        "id": "r-ext", "title": "Manuel", "type": "BOOK", "content": "Nathan", "subject": "SVT",
        "created_at": "2025-01-01T00:00:00Z",
    })
    r = await client.post("/refresh")
    assert r.json() == {"status": "ready"}
    assert [x["id"] for x in (await client.get("/resources")).json()] == ["r-ext"]
    # the session survives the reload
    assert (await client.get("/auth/me")).json()["id"] == "admin-init"


async def test_failed_refresh_can_be_retried(client, store):
    await _login(client, "faye@eco.com", "passer25")
    store.fail("select", "exams")
    r = await client.post("/refresh")
    assert r.status_code == 503
    assert "exams" in r.json()["detail"]
    # previous data still served
    assert (await client.get("/exams")).status_code == 200

    store.failures.clear()
    r = await client.post("/refresh")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}
    assert (await client.get("/exams")).status_code == 200


async def test_refresh_without_viewer_is_401_once_loaded(client):
    assert (await client.post("/refresh")).status_code == 401


async def test_refresh_recovers_from_failed_first_load(session_factory):
    store = MemoryStore()
    store.fail("select", "polls")
    p = Portal(SyncGateway(store), session_factory=session_factory)
    await p.load()
    c = await _client_for(p)
    async with c:
        assert (await c.post("/refresh")).status_code == 503
        store.failures.clear()
        r = await c.post("/refresh")
        assert r.status_code == 200
        assert r.json() == {"status": "ready"}
        await _login(c, "faye@eco.com", "passer25")
    app.state.portal = None
