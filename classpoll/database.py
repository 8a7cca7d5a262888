"""
SQLAlchemy engine and session for the local session slot (last-authenticated viewer).
SQLite by default; the remote dataset never goes through here.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from classpoll.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str):
    """Engine for the given URL; SQLite connections may be shared across threads."""
    is_sqlite = url.startswith("sqlite")
    return create_engine(
        url,
        pool_pre_ping=not is_sqlite,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=False,
    )


def make_session_factory(url: str) -> sessionmaker:
    """Create tables on a fresh engine and return a session factory bound to it."""
    from classpoll.models import stored_session  # noqa: F401  (registers the table)
    bind = make_engine(url)
    Base.metadata.create_all(bind=bind)
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(settings.session_database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_session_db():
    """Create the session slot table if missing. Call once at app startup."""
    from classpoll.models import stored_session  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Session store ready (%s)", engine.url.render_as_string(hide_password=True))
