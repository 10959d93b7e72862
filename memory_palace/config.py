"""
Application configuration from environment variables.
Loads .env from the project root so API keys are found regardless of cwd.
"""
import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default model for generateContent (v1beta). Cheap and fast enough for one analysis call per upload.
_DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-lite"

# Models that return 404 or are unsupported. Normalized at config load to _DEFAULT_GEMINI_MODEL.
_UNSUPPORTED_GEMINI_MODELS = frozenset({
    "gemini-1.5-flash-002", "gemini-1.5-flash-001", "gemini-1.5-flash",
    "gemini-1.5-pro", "gemini-1.5-pro-001", "gemini-1.5-pro-002",
    "gemini-2.0-flash", "gemini-2.0-flash-001", "gemini-2.0-flash-lite", "gemini-2.0-flash-lite-001",
})


def normalize_gemini_model(v: str | None) -> str:
    """Map empty or retired Gemini ids (e.g. from an old .env) to the default model."""
    s = (v or "").strip()
    if not s:
        return _DEFAULT_GEMINI_MODEL
    if s in _UNSUPPORTED_GEMINI_MODELS or s.startswith("gemini-1.5-") or s.startswith("gemini-2.0-flash"):
        return _DEFAULT_GEMINI_MODEL
    return s


# .env at the project root (parent of memory_palace/)
_PROJECT_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite:///./memory_palace.db"

    # Backends: tried in this order, first non-empty response wins. Env: BACKEND_ORDER=gemini,claude,openai
    backend_order: str = "gemini,claude,openai"

    gemini_api_key: str = ""
    gen_model_name: str = _DEFAULT_GEMINI_MODEL

    claude_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    @field_validator("gen_model_name", mode="before")
    @classmethod
    def _resolve_gen_model(cls, v: str) -> str:
        return normalize_gemini_model(v) if isinstance(v, str) else _DEFAULT_GEMINI_MODEL

    # Cascade: per-attempt bound (seconds) and max worker threads left running by timed-out sync backends.
    attempt_timeout_seconds: float = 60.0
    max_detached_attempts: int = 4

    # Outer retry around a whole cascade run; 1 means no retry.
    pipeline_retry_attempts: int = 1
    pipeline_retry_max_wait_seconds: float = 8.0

    # Source text: shorter than min is rejected before any backend call; longer than max is truncated in the prompt.
    min_source_chars: int = 20
    max_source_chars: int = 30000

    quiz_question_count: int = 5
    max_output_tokens: int = 8192

    cors_origins: str = "http://localhost:3000"

    debug: bool = False

    @property
    def resolved_claude_api_key(self) -> str:
        """Claude key from CLAUDE_API_KEY, else ANTHROPIC_API_KEY. Never log the key."""
        return (self.claude_api_key or os.environ.get("ANTHROPIC_API_KEY") or "").strip()


settings = Settings()
