"""
Outer retry policy: re-run a whole cascade with exponential backoff when every backend failed.
Separate from the cascade itself, which never retries the same backend.
"""
import logging

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from memory_palace.errors import AllBackendsExhausted
from memory_palace.llm.cascade import CascadeExecutor, CascadeResult

logger = logging.getLogger(__name__)


def _log_retry(retry_state) -> None:
    logger.warning(
        "All backends failed (run %s); retrying cascade: %s",
        retry_state.attempt_number,
        retry_state.outcome.exception() if retry_state.outcome else "",
    )


async def run_with_retry(
    executor: CascadeExecutor,
    prompt: str,
    attempts: int = 1,
    max_wait: float = 8.0,
) -> CascadeResult:
    """Run executor.run(prompt) up to `attempts` times; re-raises the last AllBackendsExhausted."""
    if attempts <= 1:
        return await executor.run(prompt)
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(AllBackendsExhausted),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=min(1.0, max_wait), max=max_wait),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            result = await executor.run(prompt)
    return result
