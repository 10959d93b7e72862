"""
Numerical sets: quiz problems grouped under one formula. Input order is preserved.
"""
import logging
from typing import Any

from memory_palace import metrics
from memory_palace.schemas.analysis import NumericalSet
from memory_palace.services.quiz_normalizer import normalize_quiz

logger = logging.getLogger(__name__)

_FORMULA_KEYS = ("relatedFormula", "related_formula", "formula")


def normalize_numerical_set(item: Any) -> NumericalSet | None:
    """Keep a set only when it has a formula label and at least one problem survives normalization."""
    if not isinstance(item, dict):
        return None
    formula = next((item[k] for k in _FORMULA_KEYS if isinstance(item.get(k), str) and item[k].strip()), None)
    if formula is None:
        return None
    problems = normalize_quiz(item.get("problems"))
    if not problems:
        return None
    return NumericalSet(related_formula=formula.strip(), problems=tuple(problems))


def normalize_numericals(items: Any) -> list[NumericalSet]:
    if not isinstance(items, list):
        return []
    out = []
    for idx, item in enumerate(items):
        s = normalize_numerical_set(item)
        if s is None:
            logger.info("Dropping numerical set %s (no formula or no valid problems)", idx)
            metrics.increment_records_dropped("numerical_set")
            continue
        out.append(s)
    return out
