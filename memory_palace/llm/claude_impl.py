"""
Claude (Anthropic) backend: Messages API through AsyncAnthropic.
Uses CLAUDE_API_KEY or ANTHROPIC_API_KEY.
"""
import logging

from anthropic import AsyncAnthropic

from memory_palace.config import settings
from memory_palace.errors import BackendError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert teacher building study material. Output valid JSON only, no other text."


class ClaudeBackend:
    name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        # Cascade owns the per-attempt timeout; SDK retries would stretch it, so disable them.
        self._client = AsyncAnthropic(api_key=api_key or settings.resolved_claude_api_key, max_retries=0)
        self._model = model or settings.claude_model

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=settings.max_output_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise BackendError(f"claude {self._model}: {e}") from e

        inp = getattr(response.usage, "input_tokens", 0) or 0
        out = getattr(response.usage, "output_tokens", 0) or 0
        logger.info("Claude API response: input_tokens=%s, output_tokens=%s", inp, out)
        raw = ""
        for block in response.content or []:
            text = getattr(block, "text", None)
            if text:
                raw += str(text)
        return raw.strip()


def get_backend() -> ClaudeBackend | None:
    key = settings.resolved_claude_api_key
    if not key:
        logger.warning("CLAUDE_API_KEY / ANTHROPIC_API_KEY is empty or unset; Claude backend disabled.")
        return None
    logger.info("Claude API key is set (len=%s); using Claude (Anthropic) API", len(key))
    return ClaudeBackend(api_key=key)
