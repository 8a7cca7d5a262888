"""
No-op drafter: used when GEMINI_API_KEY is not set. Poll creation works the same, just without proposals.
"""
import logging

from classpoll.llm.base import PollDraft

logger = logging.getLogger(__name__)


class NullPollDrafter:
    """Always returns no proposal."""

    async def draft_poll(self, topic: str, difficulty: str) -> PollDraft | None:
        logger.info("Poll draft requested for %r but no GEMINI_API_KEY is set; no proposal.", topic)
        return None


def get_null_poll_drafter() -> NullPollDrafter:
    return NullPollDrafter()
