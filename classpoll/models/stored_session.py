"""
Stored session: one row per slot key holding the serialized last-authenticated user.
Only the id inside payload is trusted; the user itself is re-read from the loaded dataset.
"""
from datetime import datetime
from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from classpoll.database import Base


class StoredSession(Base):
    __tablename__ = "stored_sessions"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
