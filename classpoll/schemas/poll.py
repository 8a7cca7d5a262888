"""
Poll request/response schemas, including the optional AI draft.
"""
from datetime import datetime

from pydantic import BaseModel, field_validator

from classpoll.llm.base import PollDraft
from classpoll.schemas.common import OptionalText, Text


class PollCreate(BaseModel):
    title: Text
    description: OptionalText = None
    options: list[str]  # option labels, in display order
    is_anonymous: bool = False
    target_class: OptionalText = None
    expires_at: datetime | None = None  # default: now + POLL_DEFAULT_LIFETIME_DAYS

    @field_validator("options")
    @classmethod
    def at_least_two_options(cls, v: list[str]) -> list[str]:
        labels = [o.strip() for o in v if isinstance(o, str) and o.strip()]
        if len(labels) < 2:
            raise ValueError("a poll needs at least two non-empty options")
        return labels


class VoteRequest(BaseModel):
    option_id: str


class PollDraftRequest(BaseModel):
    topic: Text
    difficulty: OptionalText = None


class PollDraftResponse(BaseModel):
    """proposal is None when drafting is unavailable or failed; the form works without it."""
    proposal: PollDraft | None = None
