"""
Quiz normalization: coerce loosely-typed generator items into QuizRecord or drop them.
Every returned record has correct_answer equal to one of its options.
"""
import logging
import re
from typing import Any

from memory_palace import metrics
from memory_palace.schemas.analysis import DIFFICULTIES, QuizRecord

logger = logging.getLogger(__name__)

_LETTER_RE = re.compile(r"^[A-D]$", re.IGNORECASE)
# Generators sometimes use snake_case or "answer" instead of correctAnswer
_ANSWER_KEYS = ("correctAnswer", "correct_answer", "answer")


def _as_text(value: Any) -> str | None:
    """Strings and plain numbers as trimmed text; anything else is malformed."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value).strip()
    return None


def _clean_options(raw: Any) -> list[str] | None:
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    options = []
    for o in raw:
        text = _as_text(o)
        if text is None:
            return None
        options.append(text)
    return options


def normalize_difficulty(value: Any) -> str:
    d = value.strip().lower() if isinstance(value, str) else ""
    return d if d in DIFFICULTIES else "medium"


def resolve_correct_answer(raw_answer: Any, options: list[str]) -> str:
    """
    Pick the option the generator meant.
    An answer that already equals an option wins; a bare letter A-D maps to options[0..3]
    (out of range -> first option); then exact case-insensitive match, then first option
    containing the answer as a substring, then the first option.
    """
    correct = _as_text(raw_answer) or ""
    lowered = [o.lower() for o in options]
    if correct.lower() in lowered:
        return options[lowered.index(correct.lower())]
    if _LETTER_RE.match(correct):
        index = ord(correct.upper()) - ord("A")
        correct = options[index] if index < len(options) else options[0]
    needle = correct.lower()
    for opt, low in zip(options, lowered):
        if low == needle:
            return opt
    if needle:
        for opt, low in zip(options, lowered):
            if needle in low:
                return opt
    return options[0]


def normalize_quiz_record(item: Any) -> QuizRecord | None:
    """Return a valid QuizRecord, or None when question/options are missing or malformed."""
    if not isinstance(item, dict):
        return None
    question = _as_text(item.get("question"))
    if not question:
        return None
    options = _clean_options(item.get("options"))
    if options is None:
        return None
    raw_answer = next((item[k] for k in _ANSWER_KEYS if item.get(k) not in (None, "")), "")
    explanation = item.get("explanation")
    return QuizRecord(
        question=question,
        options=tuple(options),
        correct_answer=resolve_correct_answer(raw_answer, options),
        explanation=explanation.strip() if isinstance(explanation, str) else "",
        difficulty=normalize_difficulty(item.get("difficulty")),
    )


def normalize_quiz(items: Any) -> list[QuizRecord]:
    """Normalize each candidate independently; invalid ones are dropped and counted, never raised."""
    if not isinstance(items, list):
        if items is not None:
            logger.info("quiz field is %s, not a list; treating as empty", type(items).__name__)
        return []
    out: list[QuizRecord] = []
    for idx, item in enumerate(items):
        record = normalize_quiz_record(item)
        if record is None:
            logger.info("Dropping malformed quiz item %s (missing/invalid question or options)", idx)
            metrics.increment_records_dropped("quiz_item")
            continue
        out.append(record)
    return out
