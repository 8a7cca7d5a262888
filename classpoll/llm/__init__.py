"""
LLM abstraction: draft_poll(topic, difficulty) -> PollDraft | None.
Gemini only. Uses GEN_MODEL_NAME and GEMINI_API_KEY.
"""
from classpoll.llm.base import PollDraft, PollDrafter


def get_poll_drafter() -> PollDrafter:
    """Return the Gemini drafter; the no-op drafter if GEMINI_API_KEY is missing."""
    from classpoll.llm.gemini_impl import get_poll_drafter as _get_drafter
    return _get_drafter()


__all__ = ["PollDraft", "PollDrafter", "get_poll_drafter"]
