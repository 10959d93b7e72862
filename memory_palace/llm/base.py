"""
Backend interface and the immutable cascade ordering.
Every provider is called the same way: generate(prompt) -> text, raising on failure.
"""
import logging
from typing import NamedTuple, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

KNOWN_BACKENDS = ("gemini", "claude", "openai", "mock")


@runtime_checkable
class GenerativeBackend(Protocol):
    """One text-generation provider. generate may be a coroutine function or a plain (blocking) function."""

    name: str

    def generate(self, prompt: str) -> str:
        ...


class BackendDescriptor(NamedTuple):
    name: str
    priority: int  # 0 = tried first


class CascadeConfig(NamedTuple):
    """Process-wide backend order plus attempt bounds. Built once, never mutated."""

    backends: tuple[BackendDescriptor, ...]
    attempt_timeout_seconds: float = 60.0
    max_detached_attempts: int = 4

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(d.name for d in sorted(self.backends, key=lambda d: d.priority))


def parse_backend_order(raw: str, known: tuple[str, ...] = KNOWN_BACKENDS) -> tuple[BackendDescriptor, ...]:
    """'gemini, claude' -> descriptors in that priority. Unknown names skipped, duplicates keep first."""
    seen: list[str] = []
    for part in (raw or "").split(","):
        name = part.strip().lower()
        if not name:
            continue
        if name not in known:
            logger.warning("Unknown backend %r in BACKEND_ORDER; skipping", name)
            continue
        if name not in seen:
            seen.append(name)
    return tuple(BackendDescriptor(name=n, priority=i) for i, n in enumerate(seen))


def load_cascade_config(settings) -> CascadeConfig:
    return CascadeConfig(
        backends=parse_backend_order(settings.backend_order),
        attempt_timeout_seconds=float(settings.attempt_timeout_seconds),
        max_detached_attempts=max(1, int(settings.max_detached_attempts)),
    )
