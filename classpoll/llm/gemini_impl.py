"""
Gemini (Google) poll drafting via google.genai (async client).
Uses GEN_MODEL_NAME (e.g. gemini-2.5-flash) and GEMINI_API_KEY.
Structured JSON output; tenacity retries on 429/5xx; every failure ends as "no proposal".
"""
import json
import logging
import os
import time

import json_repair
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from classpoll.config import settings
from classpoll.llm.base import DRAFT_OPTION_COUNT, PollDraft

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Retry on 429 (rate limit) and 5xx."""
    msg = str(exc).lower()
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return True
    if "500" in msg or "502" in msg or "503" in msg or "resource exhausted" in msg:
        return True
    return False


POLL_DRAFT_SYSTEM = """You write multiple-choice questions for school class polls and quizzes.
Write one clear question with short, distinct answer options. No trick questions, no jokes.
Output only valid JSON: {"question": str, "options": [str, ...]}. No markdown, no text before or after."""


def _get_api_key() -> str:
    """Resolve Gemini API key from settings or env. Never log the key."""
    return (settings.gemini_api_key or os.environ.get("GEMINI_API_KEY") or "").strip()


_UNSUPPORTED_MODEL_FALLBACK = "gemini-2.5-flash"


def _resolve_model_name(name: str) -> str:
    """Return a model id that works with generateContent. Replace known-unsupported ids (e.g. from old .env)."""
    n = (name or "").strip()
    if not n:
        return _UNSUPPORTED_MODEL_FALLBACK
    if n.startswith("gemini-1.5-") or n.startswith("gemini-2.0-flash"):
        logger.info("Gemini: mapping unsupported model %s -> %s", n, _UNSUPPORTED_MODEL_FALLBACK)
        return _UNSUPPORTED_MODEL_FALLBACK
    return n


def _strip_json_fences(text: str) -> str:
    """Remove markdown code fences and leading/trailing non-JSON around the object."""
    t = text.strip()
    if t.startswith("```"):
        lines = t.split("\n")
        if lines[0].strip().startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        t = "\n".join(lines)
    start = t.find("{")
    end = t.rfind("}")
    if start != -1 and end != -1 and end > start:
        t = t[start : end + 1]
    return t.strip()


def _parse_draft_json(raw: str) -> PollDraft | None:
    """Parse {"question", "options"}; keep up to DRAFT_OPTION_COUNT non-empty options. None if unusable."""
    if not raw or not raw.strip():
        logger.warning("Gemini poll draft: empty raw response")
        return None
    text = _strip_json_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        data = json_repair.loads(text)
        if not isinstance(data, dict) or not data:
            logger.warning("Gemini poll draft JSON parse failed: %s. raw (first 500 chars): %s", e, raw[:500])
            return None
    if not isinstance(data, dict):
        return None
    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        return None
    options = data.get("options")
    if not isinstance(options, list):
        return None
    labels = []
    for o in options:
        label = o.get("text", "") if isinstance(o, dict) else o
        if isinstance(label, (str, int, float)) and str(label).strip():
            labels.append(str(label).strip())
    labels = labels[:DRAFT_OPTION_COUNT]
    if len(labels) < 2:
        return None
    return PollDraft(question=question.strip(), options=labels)


class GeminiPollDrafter:
    """Google Gemini implementation via google.genai SDK (aio generate_content)."""

    def __init__(self, model_name: str | None = None, api_key: str | None = None) -> None:
        from google import genai
        key = api_key or _get_api_key()
        self._client = genai.Client(api_key=key)
        self._model_name = _resolve_model_name(model_name or settings.gen_model_name)

    async def draft_poll(self, topic: str, difficulty: str) -> PollDraft | None:
        from google.genai import types
        user_content = (
            f'Generate a single multiple-choice quiz question about "{topic}" '
            f"for a {difficulty} level student. Return exactly {DRAFT_OPTION_COUNT} options."
        )
        config = types.GenerateContentConfig(
            system_instruction=POLL_DRAFT_SYSTEM,
            response_mime_type="application/json",
            response_schema=PollDraft,
            max_output_tokens=1024,
            temperature=0.7,
        )

        @retry(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            reraise=True,
        )
        async def _create():
            return await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=user_content,
                config=config,
            )

        try:
            t_start = time.perf_counter()
            response = await _create()
            logger.info("Gemini draft_poll API %.2fs (model=%s)", time.perf_counter() - t_start, self._model_name)
        except Exception as e:
            logger.warning("Gemini draft_poll failed: %s", e)
            return None

        raw = (getattr(response, "text", None) or "").strip()
        draft = _parse_draft_json(raw)
        if draft is None:
            logger.info("Gemini draft_poll: no usable proposal for topic %r", topic)
        return draft


def get_poll_drafter():
    """Return the Gemini drafter if an API key is set; otherwise the no-op drafter."""
    key = _get_api_key()
    if not key:
        logger.warning("GEMINI_API_KEY is empty or unset; poll drafting disabled.")
        from classpoll.llm.null_impl import get_null_poll_drafter
        return get_null_poll_drafter()
    model_name = _resolve_model_name(settings.gen_model_name)
    logger.info("Using LLM: %s (Gemini)", model_name)
    return GeminiPollDrafter(model_name=model_name, api_key=key)
