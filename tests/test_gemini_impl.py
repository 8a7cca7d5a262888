"""
Unit tests for the Gemini poll drafter: JSON parsing, model resolution, and draft_poll with a fake client.
No test reaches the real API.
"""
from types import SimpleNamespace

import pytest

from classpoll.llm.base import PollDraft
from classpoll.llm.gemini_impl import _is_retryable, _parse_draft_json, _resolve_model_name


def test_parse_draft_json_valid():
    raw = '{"question": "Capital of Senegal?", "options": ["Dakar", "Thies", "Saint-Louis", "Ziguinchor"]}'
    draft = _parse_draft_json(raw)
    assert draft == PollDraft(question="Capital of Senegal?", options=["Dakar", "Thies", "Saint-Louis", "Ziguinchor"])


def test_parse_draft_json_keeps_at_most_four_options():
    raw = '{"question": "Q?", "options": ["a", "b", "c", "d", "e"]}'
    assert _parse_draft_json(raw).options == ["a", "b", "c", "d"]


def test_parse_draft_json_options_as_objects():
    """Some answers come back as [{"text": ...}]; labels are taken from text."""
    raw = '{"question": "Q?", "options": [{"text": "Yes"}, {"text": "No"}, {"text": ""}]}'
    assert _parse_draft_json(raw).options == ["Yes", "No"]


def test_parse_draft_json_strips_markdown_fence():
    raw = '''```json
{"question": "Q?", "options": ["a", "b"]}
```'''
    assert _parse_draft_json(raw).question == "Q?"


def test_parse_draft_json_repairs_trailing_comma():
    raw = '{"question": "Q?", "options": ["a", "b",],}'
    draft = _parse_draft_json(raw)
    assert draft is not None
    assert draft.options == ["a", "b"]


def test_parse_draft_json_unusable_returns_none():
    """Empty, non-JSON, no question, or fewer than two options: no proposal (and no exception)."""
    assert _parse_draft_json("") is None
    assert _parse_draft_json("   ") is None
    assert _parse_draft_json("not json") is None
    assert _parse_draft_json('{"options": ["a", "b"]}') is None
    assert _parse_draft_json('{"question": "Q?", "options": ["only one"]}') is None


def test_resolve_model_name_unsupported_mapped_to_fallback():
    """Unsupported model ids (e.g. from old .env) are mapped to gemini-2.5-flash to avoid 404."""
    assert _resolve_model_name("gemini-1.5-flash-002") == "gemini-2.5-flash"
    assert _resolve_model_name("gemini-1.5-pro") == "gemini-2.5-flash"
    assert _resolve_model_name("gemini-2.0-flash") == "gemini-2.5-flash"
    assert _resolve_model_name("gemini-2.5-flash") == "gemini-2.5-flash"
    assert _resolve_model_name("   ") == "gemini-2.5-flash"


def test_is_retryable():
    assert _is_retryable(Exception("429 RESOURCE_EXHAUSTED"))
    assert _is_retryable(Exception("503 Service Unavailable"))
    assert not _is_retryable(Exception("400 invalid argument"))


def test_get_poll_drafter_without_key_is_null(monkeypatch):
    import classpoll.llm.gemini_impl as gemini_impl
    from classpoll.llm.null_impl import NullPollDrafter

    monkeypatch.setattr(gemini_impl, "_get_api_key", lambda: "")
    assert isinstance(gemini_impl.get_poll_drafter(), NullPollDrafter)


def test_get_poll_drafter_uses_resolved_model(monkeypatch):
    pytest.importorskip("google.genai")
    import classpoll.llm.gemini_impl as gemini_impl

    monkeypatch.setattr(gemini_impl, "_get_api_key", lambda: "test-key")
    fake_settings = type("Settings", (), {"gen_model_name": "gemini-1.5-flash-002"})()
    monkeypatch.setattr(gemini_impl, "settings", fake_settings)
    drafter = gemini_impl.get_poll_drafter()
    assert isinstance(drafter, gemini_impl.GeminiPollDrafter)
    assert drafter._model_name == "gemini-2.5-flash"


def _fake_client(generate_content):
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))


async def test_draft_poll_returns_proposal():
    pytest.importorskip("google.genai")
    from classpoll.llm.gemini_impl import GeminiPollDrafter

    seen = {}

    async def generate_content(model, contents, config):
        seen["model"] = model
        seen["contents"] = contents
        return SimpleNamespace(text='{"question": "2 + 2?", "options": ["3", "4", "5", "22"]}')

    drafter = GeminiPollDrafter(model_name="gemini-2.5-flash", api_key="test-key")
    drafter._client = _fake_client(generate_content)

    draft = await drafter.draft_poll("arithmetic", "Primary School")
    assert draft.question == "2 + 2?"
    assert draft.options == ["3", "4", "5", "22"]
    assert seen["model"] == "gemini-2.5-flash"
    assert "arithmetic" in seen["contents"]
    assert "Primary School" in seen["contents"]


async def test_draft_poll_api_error_returns_none():
    pytest.importorskip("google.genai")
    from classpoll.llm.gemini_impl import GeminiPollDrafter

    async def generate_content(model, contents, config):
        raise RuntimeError("400 API key not valid")

    drafter = GeminiPollDrafter(model_name="gemini-2.5-flash", api_key="test-key")
    drafter._client = _fake_client(generate_content)

    assert await drafter.draft_poll("history", "High School") is None


async def test_null_drafter_returns_none():
    from classpoll.llm.null_impl import NullPollDrafter

    assert await NullPollDrafter().draft_poll("history", "High School") is None
