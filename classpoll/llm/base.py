"""


Poll drafting interface: topic + difficulty -> one multiple-choice question, or None.
Implementations never raise; a missing key, an API error or an unusable answer all mean "no proposal".
"""
from typing import Protocol

from pydantic import BaseModel

# Number of answer options requested from the model; a draft keeps at most this many.
DRAFT_OPTION_COUNT = 4


class PollDraft(BaseModel):
    question: str
    options: list[str]


class PollDrafter(Protocol):
    """Abstract interface for drafting a poll question."""

    async def draft_poll(self, topic: str, difficulty: str) -> PollDraft | None:
        """Return a proposed question with up to DRAFT_OPTION_COUNT options, or None."""
        ...
