"""
Gemini (Google) backend via google.genai (new SDK), async client so timeouts cancel the request.
Uses GEN_MODEL_NAME (e.g. gemini-2.5-flash-lite) and GEMINI_API_KEY.
"""
import logging
import os
import time

from memory_palace.config import normalize_gemini_model, settings
from memory_palace.errors import BackendError

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = "You are an expert teacher. Output only valid JSON, no markdown and no text before or after."


def get_gemini_api_key() -> str:
    """Resolve Gemini API key from settings or env. Never log the key."""
    return (getattr(settings, "gemini_api_key", "") or os.environ.get("GEMINI_API_KEY") or "").strip()


def _resolve_model_name(name: str | None) -> str:
    resolved = normalize_gemini_model(name)
    if name and resolved != name.strip():
        logger.info("Gemini: mapping unsupported model %s -> %s", name, resolved)
    return resolved


def _safety_settings_none():
    """Safety settings to avoid blocking study content (google.genai types)."""
    from google.genai import types
    return [
        types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_NONE"),
        types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_NONE"),
        types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_NONE"),
        types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_NONE"),
    ]


class GeminiBackend:
    """Google Gemini implementation (client.aio.models.generate_content)."""

    name = "gemini"

    def __init__(self, model_name: str | None = None, api_key: str | None = None) -> None:
        from google import genai
        from google.genai import types
        self._client = genai.Client(api_key=api_key or get_gemini_api_key())
        self._types = types
        self._model_name = _resolve_model_name(model_name or settings.gen_model_name)

    async def generate(self, prompt: str) -> str:
        config = self._types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            safety_settings=_safety_settings_none(),
            max_output_tokens=settings.max_output_tokens,
            temperature=0.3,
        )
        t0 = time.perf_counter()
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise BackendError(f"gemini {self._model_name}: {e}") from e
        raw = (getattr(response, "text", None) or "").strip()
        um = getattr(response, "usage_metadata", None)
        if um:
            logger.info(
                "Gemini API response %.2fs: input_tokens=%s, output_tokens=%s",
                time.perf_counter() - t0,
                getattr(um, "prompt_token_count", 0) or 0,
                getattr(um, "candidates_token_count", 0) or 0,
            )
        return raw


def get_backend() -> GeminiBackend | None:
    """Return Gemini backend if an API key is set; otherwise None (skipped in the cascade)."""
    key = get_gemini_api_key()
    if not key:
        logger.warning("GEMINI_API_KEY is empty or unset; Gemini backend disabled.")
        return None
    backend = GeminiBackend(api_key=key)
    logger.info("Using LLM: %s (Gemini)", backend._model_name)
    return backend
