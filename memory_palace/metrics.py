"""
In-process counters for observability. Process-local; for multi-worker use external metrics (e.g. Prometheus).
"""
import threading
from collections import Counter

_lock = threading.Lock()
_backend_failures: Counter = Counter()
_records_dropped: Counter = Counter()
_sanitized_payloads_total: int = 0


def increment_backend_failures(backend: str) -> int:
    """Count one failed/timed-out attempt for backend; return new value. Thread-safe."""
    with _lock:
        _backend_failures[backend] += 1
        return _backend_failures[backend]


def increment_records_dropped(reason: str, count: int = 1) -> int:
    """Count sub-records dropped during normalization, keyed by reason. Thread-safe."""
    with _lock:
        _records_dropped[reason] += count
        return _records_dropped[reason]


def increment_sanitized_payloads() -> int:
    global _sanitized_payloads_total
    with _lock:
        _sanitized_payloads_total += 1
        return _sanitized_payloads_total


def snapshot() -> dict:
    """Copy of all counters."""
    with _lock:
        return {
            "backend_failures_total": dict(_backend_failures),
            "records_dropped_total": dict(_records_dropped),
            "sanitized_payloads_total": _sanitized_payloads_total,
        }


def reset() -> None:
    """Zero all counters (tests)."""
    global _sanitized_payloads_total
    with _lock:
        _backend_failures.clear()
        _records_dropped.clear()
        _sanitized_payloads_total = 0
