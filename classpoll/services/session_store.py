"""
Session Store: remembers who is logged in across restarts, in one local slot.
restore() trusts only the stored id and only if that user exists in the freshly loaded cache;
anything else (unknown id, unreadable payload) clears the slot without surfacing an error.
"""
import logging

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import sessionmaker

from classpoll.config import settings
from classpoll.models import User
from classpoll.models.stored_session import StoredSession
from classpoll.services.state import DomainState

logger = logging.getLogger(__name__)


class _StoredIdentity(BaseModel):
    id: str


class SessionStore:
    """Persisted identity of the current viewer plus the in-process `current` user."""

    def __init__(
        self,
        state: DomainState,
        session_factory: sessionmaker | None = None,
        key: str | None = None,
    ) -> None:
        if session_factory is None:
            from classpoll.database import SessionLocal
            session_factory = SessionLocal
        self._state = state
        self._session_factory = session_factory
        self._key = key or settings.session_key
        self.current: User | None = None

    def _read_payload(self) -> str | None:
        db = self._session_factory()
        try:
            row = db.get(StoredSession, self._key)
            return row.payload if row else None
        finally:
            db.close()

    def restore(self) -> User | None:
        """Return the stored viewer if still present in the loaded users; otherwise clear and return None."""
        payload = self._read_payload()
        if payload is None:
            self.current = None
            return None
        try:
            stored = _StoredIdentity.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Invalid session data, clearing: %s", e.errors()[:1])
            self.clear()
            return None
        user = next((u for u in self._state.users if u.id == stored.id), None)
        if user is None:
            logger.info("Stored session points at unknown user %s; clearing", stored.id)
            self.clear()
            return None
        self.current = user
        logger.info("Session restored for user %s", user.id)
        return user

    def persist(self, user: User) -> None:
        """Save user as the stored identity and make it the current viewer."""
        db = self._session_factory()
        try:
            row = db.get(StoredSession, self._key)
            payload = user.model_dump_json(exclude={"password"})
            if row is None:
                db.add(StoredSession(key=self._key, payload=payload))
            else:
                row.payload = payload
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        self.current = user

    def clear(self) -> None:
        db = self._session_factory()
        try:
            row = db.get(StoredSession, self._key)
            if row is not None:
                db.delete(row)
                db.commit()
        finally:
            db.close()
        self.current = None
