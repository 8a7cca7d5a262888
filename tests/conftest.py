"""
Shared fixtures: an in-memory remote store, a throwaway SQLite session slot, and a Portal wired to both.
"""
import pytest

from classpoll import metrics
from classpoll.database import make_session_factory
from classpoll.models import User, UserRole
from classpoll.services.portal import Portal
from classpoll.store.gateway import SyncGateway
from classpoll.store.memory_impl import MemoryStore

ADMIN_ROW = {
    "id": "admin-init",
    "name": "Administrateur Principal",
    "email": "faye@eco.com",
    "password": "passer25",
    "role": "ADMIN",
}


def user_row(user_id: str, role: str = "ELEVE", class_group: str | None = "6A", email: str | None = None) -> dict:
    return {
        "id": user_id,
        "name": f"User {user_id}",
        "email": email or f"{user_id}@lycee.sn",
        "password": "secret",
        "role": role,
        "class_group": class_group,
    }


@pytest.fixture
def session_factory(tmp_path):
    return make_session_factory(f"sqlite:///{tmp_path / 'session.db'}")


@pytest.fixture
def store():
    return MemoryStore(tables={
        "users": [
            ADMIN_ROW,
            user_row("stu-a", class_group="6A"),
            user_row("stu-b", class_group="6B"),
            user_row("resp-a", role="RESPONSABLE", class_group="6A"),
        ],
        "class_groups": [{"id": "cg-a", "name": "6A"}, {"id": "cg-b", "name": "6B"}],
    })


@pytest.fixture
def gateway(store):
    return SyncGateway(store)


@pytest.fixture
async def portal(gateway, session_factory):
    p = Portal(gateway, session_factory=session_factory)
    await p.load()
    yield p
    await p.mutations.drain()


@pytest.fixture(autouse=True)
def reset_write_failures(monkeypatch):
    monkeypatch.setattr(metrics, "remote_write_failures_total", 0)


@pytest.fixture
def student_a() -> User:
    return User(id="stu-a", name="User stu-a", email="stu-a@lycee.sn", password="secret",
                role=UserRole.STUDENT, class_group="6A")


@pytest.fixture
def student_b() -> User:
    return User(id="stu-b", name="User stu-b", email="stu-b@lycee.sn", password="secret",
                role=UserRole.STUDENT, class_group="6B")
