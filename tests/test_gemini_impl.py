"""
Unit tests for the Gemini backend: model name resolution and the async generate path.
"""
import asyncio

import pytest

from memory_palace.errors import BackendError
from memory_palace.llm.gemini_impl import _resolve_model_name


def test_resolve_model_name_keeps_supported():
    """Supported model ids are left unchanged; retired ones map to the default."""
    assert _resolve_model_name("gemini-2.5-flash") == "gemini-2.5-flash"
    assert _resolve_model_name("gemini-1.5-pro") == "gemini-2.5-flash-lite"
    assert _resolve_model_name("gemini-2.0-flash-001") == "gemini-2.5-flash-lite"


def test_resolve_model_name_empty_returns_default():
    assert _resolve_model_name("") == "gemini-2.5-flash-lite"
    assert _resolve_model_name("   ") == "gemini-2.5-flash-lite"
    assert _resolve_model_name(None) == "gemini-2.5-flash-lite"


def test_get_backend_disabled_without_key(monkeypatch):
    import memory_palace.llm.gemini_impl as gemini_impl

    monkeypatch.setattr(gemini_impl, "get_gemini_api_key", lambda: "")
    assert gemini_impl.get_backend() is None


def test_generate_returns_stripped_text(monkeypatch):
    pytest.importorskip("google.genai")
    from memory_palace.llm.gemini_impl import GeminiBackend

    usage = type("Usage", (), {"prompt_token_count": 10, "candidates_token_count": 20})()
    response = type("Response", (), {"text": '  {"summary": "S"}\n', "usage_metadata": usage})()
    seen = {}

    async def fake_generate_content(model, contents, config):
        seen["model"] = model
        seen["contents"] = contents
        return response

    backend = GeminiBackend(model_name="gemini-2.5-flash", api_key="test-key")
    monkeypatch.setattr(backend._client.aio.models, "generate_content", fake_generate_content)

    assert asyncio.run(backend.generate("study text")) == '{"summary": "S"}'
    assert seen == {"model": "gemini-2.5-flash", "contents": "study text"}


def test_generate_wraps_sdk_errors(monkeypatch):
    pytest.importorskip("google.genai")
    from memory_palace.llm.gemini_impl import GeminiBackend

    async def boom(model, contents, config):
        raise RuntimeError("429 RESOURCE_EXHAUSTED")

    backend = GeminiBackend(api_key="test-key")
    monkeypatch.setattr(backend._client.aio.models, "generate_content", boom)

    with pytest.raises(BackendError, match="RESOURCE_EXHAUSTED"):
        asyncio.run(backend.generate("study text"))
