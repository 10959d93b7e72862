"""
LLM backends and the cascade that tries them in order.
build_backends(config) instantiates every configured backend that has an API key;
with no keys at all the mock backend keeps the service usable locally.
"""
import logging

from memory_palace.llm.base import (
    BackendDescriptor,
    CascadeConfig,
    GenerativeBackend,
    load_cascade_config,
    parse_backend_order,
)
from memory_palace.llm.cascade import CascadeExecutor, CascadeResult, GenerationAttempt

logger = logging.getLogger(__name__)


def _load_backend(name: str) -> GenerativeBackend | None:
    """Instantiate one backend by name; None when its key is missing or its SDK cannot be imported."""
    try:
        if name == "gemini":
            from memory_palace.llm.gemini_impl import get_backend
        elif name == "claude":
            from memory_palace.llm.claude_impl import get_backend
        elif name == "openai":
            from memory_palace.llm.openai_impl import get_backend
        elif name == "mock":
            from memory_palace.llm.mock_impl import get_mock_backend as get_backend
        else:
            return None
    except ImportError as e:
        logger.warning("%s SDK not available, skipping backend: %s", name, e)
        return None
    return get_backend()


def build_backends(config: CascadeConfig) -> dict[str, GenerativeBackend]:
    backends: dict[str, GenerativeBackend] = {}
    for name in config.names:
        backend = _load_backend(name)
        if backend is not None:
            backends[name] = backend
    if not backends:
        logger.warning("No LLM backend has an API key; using mock LLM.")
        from memory_palace.llm.mock_impl import get_mock_backend
        backends["mock"] = get_mock_backend()
    return backends


def build_executor(config: CascadeConfig) -> CascadeExecutor:
    """Executor over the available backends. Falls back to a mock-only order when nothing else is usable."""
    backends = build_backends(config)
    if not any(n in backends for n in config.names):
        config = config._replace(backends=(BackendDescriptor("mock", 0),))
    return CascadeExecutor(config, backends)


__all__ = [
    "BackendDescriptor",
    "CascadeConfig",
    "CascadeExecutor",
    "CascadeResult",
    "GenerationAttempt",
    "GenerativeBackend",
    "build_backends",
    "build_executor",
    "load_cascade_config",
    "parse_backend_order",
]
