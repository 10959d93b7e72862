"""
OpenAI backend: chat completions through AsyncOpenAI.
"""
import logging

from openai import AsyncOpenAI

from memory_palace.config import settings
from memory_palace.errors import BackendError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert teacher building study material. Output valid JSON only, no markdown or extra text."


class OpenAIBackend:
    name = "openai"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.client = AsyncOpenAI(api_key=api_key or settings.openai_api_key, max_retries=0)
        self.model = model or settings.openai_model

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=settings.max_output_tokens,
            )
        except Exception as e:
            raise BackendError(f"openai {self.model}: {e}") from e
        usage = response.usage
        if usage:
            logger.info(
                "OpenAI API response: input_tokens=%s, output_tokens=%s",
                usage.prompt_tokens or 0,
                usage.completion_tokens or 0,
            )
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()


def get_backend() -> OpenAIBackend | None:
    if not (settings.openai_api_key or "").strip():
        logger.warning("OPENAI_API_KEY is empty or unset; OpenAI backend disabled.")
        return None
    return OpenAIBackend()
