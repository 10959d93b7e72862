"""
Cascade executor: try each configured backend in priority order, once, each attempt bounded by a timeout.
First non-empty response wins; if every backend fails, raise AllBackendsExhausted with one entry per attempt.

Async backends are cancelled on timeout (asyncio.wait_for). Blocking backends run on a small
dedicated thread pool; a thread that outlives its timeout keeps its slot until it returns, so
sustained timeouts cannot pile up unbounded work (further attempts fail fast instead).
"""
import asyncio
import inspect
import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

from memory_palace import metrics
from memory_palace.errors import AllBackendsExhausted, DetachedLimitReached, EmptyBackendResponse
from memory_palace.llm.base import CascadeConfig, GenerativeBackend

logger = logging.getLogger(__name__)


class GenerationAttempt(NamedTuple):
    backend: str
    ok: bool
    error: str | None = None
    elapsed_seconds: float = 0.0


class CascadeResult(NamedTuple):
    text: str
    backend: str
    attempts: tuple[GenerationAttempt, ...]

    @property
    def failures(self) -> tuple[GenerationAttempt, ...]:
        return tuple(a for a in self.attempts if not a.ok)


class CascadeExecutor:
    """Runs one prompt through the configured backends. Holds no per-run state; safe to share across requests."""

    def __init__(self, config: CascadeConfig, backends: Mapping[str, GenerativeBackend]):
        self.config = config
        self._backends = dict(backends)
        self._detached_slots = threading.BoundedSemaphore(config.max_detached_attempts)
        self._pool = ThreadPoolExecutor(
            max_workers=config.max_detached_attempts,
            thread_name_prefix="cascade-backend",
        )

    @property
    def backend_names(self) -> tuple[str, ...]:
        """Configured order, restricted to backends that are actually available."""
        return tuple(n for n in self.config.names if n in self._backends)

    async def _call_blocking(self, backend: GenerativeBackend, prompt: str) -> str:
        if not self._detached_slots.acquire(blocking=False):
            raise DetachedLimitReached(
                f"{self.config.max_detached_attempts} blocking call(s) still running; not starting another"
            )

        def _work():
            try:
                return backend.generate(prompt)
            finally:
                self._detached_slots.release()

        return await asyncio.get_running_loop().run_in_executor(self._pool, _work)

    async def _call(self, backend: GenerativeBackend, prompt: str) -> str:
        if inspect.iscoroutinefunction(backend.generate):
            return await backend.generate(prompt)
        return await self._call_blocking(backend, prompt)

    async def _attempt(self, name: str, prompt: str) -> tuple[GenerationAttempt, str | None]:
        backend = self._backends[name]
        timeout = self.config.attempt_timeout_seconds
        t0 = time.perf_counter()
        logger.info("Cascade attempt: backend=%s prompt_len=%s timeout=%.0fs", name, len(prompt), timeout)
        try:
            text = await asyncio.wait_for(self._call(backend, prompt), timeout=timeout)
            if not isinstance(text, str) or not text.strip():
                raise EmptyBackendResponse(f"{name} returned an empty response")
        except asyncio.TimeoutError:
            error = f"timed out after {timeout:.1f}s"
        except Exception as e:
            error = str(e) or type(e).__name__
        else:
            elapsed = time.perf_counter() - t0
            logger.info("Cascade attempt: backend=%s ok in %.2fs (response_len=%s)", name, elapsed, len(text))
            return GenerationAttempt(name, True, None, elapsed), text
        elapsed = time.perf_counter() - t0
        metrics.increment_backend_failures(name)
        logger.warning("Cascade attempt: backend=%s failed after %.2fs: %s", name, elapsed, error)
        return GenerationAttempt(name, False, error, elapsed), None

    async def run(self, prompt: str) -> CascadeResult:
        """Return the first non-empty response. Caller cancellation propagates immediately."""
        attempts: list[GenerationAttempt] = []
        for name in self.backend_names:
            attempt, text = await self._attempt(name, prompt)
            attempts.append(attempt)
            if text is not None:
                return CascadeResult(text=text, backend=name, attempts=tuple(attempts))
        raise AllBackendsExhausted(attempts)

    def shutdown(self) -> None:
        """Stop accepting blocking calls; running ones are not waited for."""
        self._pool.shutdown(wait=False)
