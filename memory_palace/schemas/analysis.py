"""
Analysis records: the validated output of one pipeline run.
All models are frozen; JSON field names follow the generator's camelCase (correctAnswer, relatedFormula).
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class QuizRecord(_Frozen):
    """One multiple-choice item. correct_answer is always one of options (enforced by the normalizer)."""

    question: str
    options: tuple[str, ...]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str = ""
    difficulty: Difficulty = "medium"


class NumericalSet(_Frozen):
    related_formula: str = Field(alias="relatedFormula")
    problems: tuple[QuizRecord, ...]


class FormulaRecord(_Frozen):
    expression: str
    description: str = ""


class RoadmapStep(_Frozen):
    step: int
    title: str
    description: str = ""


class AnalysisResult(_Frozen):
    """Everything recovered from one generator response."""

    summary: str
    patterns: tuple[str, ...] = ()
    formulas: tuple[FormulaRecord, ...] = ()
    quiz: tuple[QuizRecord, ...] = ()
    numericals: tuple[NumericalSet, ...] = ()
    roadmap: tuple[RoadmapStep, ...] = ()
    diagram: str | None = None
    sanitized: bool = False  # payload needed the backslash repair pass

    def to_document(self) -> dict:
        """JSON-ready dict with camelCase keys (for storage and API responses)."""
        return self.model_dump(by_alias=True, mode="json", exclude={"sanitized"})
