"""
Analysis pipeline: source text -> prompt -> cascade -> JSON recovery -> field extraction
-> quiz / numerical normalization -> AnalysisResult -> store.

Cascade exhaustion and unparseable payloads abort the run. Once a payload is parsed,
malformed sub-records are dropped individually; a partial result beats no result.
"""
import asyncio
import logging
import time
from typing import Any, NamedTuple, Protocol

from memory_palace.errors import EmptySourceText, PipelineError, UnrecoverablePayload
from memory_palace.llm.cascade import CascadeExecutor
from memory_palace.llm.llm_service import run_with_retry
from memory_palace.schemas.analysis import AnalysisResult, FormulaRecord, QuizRecord, RoadmapStep
from memory_palace.services.numerical_normalizer import normalize_numericals
from memory_palace.services.prompt_helpers import build_analysis_prompt, build_quiz_prompt
from memory_palace.services.quiz_normalizer import normalize_quiz
from memory_palace.services.recovery_parser import ContainerKind, parse_structured

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "Summary unavailable."


class AnalysisStore(Protocol):
    """Persistence collaborator: owns identity and durability."""

    def save(self, result: AnalysisResult, *, title: str, media_type: str, source_text: str) -> str:
        ...


class PipelineOutcome(NamedTuple):
    result: AnalysisResult | None = None
    error: PipelineError | None = None
    memory_id: str | None = None
    backend: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def extract_patterns(value: Any) -> tuple[str, ...]:
    return tuple(p.strip() for p in _list(value) if isinstance(p, str) and p.strip())


def extract_formulas(value: Any) -> tuple[FormulaRecord, ...]:
    out = []
    for f in _list(value):
        if not isinstance(f, dict) or not _text(f.get("expression")):
            continue
        out.append(FormulaRecord(expression=_text(f.get("expression")), description=_text(f.get("description"))))
    return tuple(out)


def extract_roadmap(value: Any) -> tuple[RoadmapStep, ...]:
    """Steps without a title are dropped; a missing or non-integer step number becomes the 1-based position."""
    out = []
    for pos, s in enumerate(_list(value), start=1):
        if not isinstance(s, dict) or not _text(s.get("title")):
            continue
        step = s.get("step")
        if isinstance(step, str) and step.strip().isdigit():
            step = int(step.strip())
        if not isinstance(step, int) or isinstance(step, bool):
            step = pos
        out.append(RoadmapStep(step=step, title=_text(s.get("title")), description=_text(s.get("description"))))
    return tuple(out)


def assemble_result(payload: dict, sanitized: bool = False) -> AnalysisResult:
    """Build an AnalysisResult from a parsed object; every missing optional field becomes empty."""
    diagram = _text(payload.get("diagram")) or None
    return AnalysisResult(
        summary=_text(payload.get("summary")) or SUMMARY_UNAVAILABLE,
        patterns=extract_patterns(payload.get("patterns")),
        formulas=extract_formulas(payload.get("formulas")),
        quiz=tuple(normalize_quiz(payload.get("quiz"))),
        numericals=tuple(normalize_numericals(payload.get("numericals"))),
        roadmap=extract_roadmap(payload.get("roadmap")),
        diagram=diagram,
        sanitized=sanitized,
    )


class PipelineOrchestrator:
    """One instance per process; every call owns its own attempts, payload and records."""

    def __init__(
        self,
        executor: CascadeExecutor,
        store: AnalysisStore | None = None,
        *,
        min_source_chars: int = 20,
        max_source_chars: int = 30000,
        retry_attempts: int = 1,
        retry_max_wait: float = 8.0,
    ):
        self.executor = executor
        self.store = store
        self.min_source_chars = min_source_chars
        self.max_source_chars = max_source_chars
        self.retry_attempts = retry_attempts
        self.retry_max_wait = retry_max_wait

    def _require_text(self, source_text: str | None) -> str:
        text = (source_text or "").strip()
        if len(text) < self.min_source_chars:
            raise EmptySourceText(len(text), self.min_source_chars)
        return text

    async def _generate(self, prompt: str):
        return await run_with_retry(self.executor, prompt, attempts=self.retry_attempts, max_wait=self.retry_max_wait)

    async def analyze(self, source_text: str, *, title: str = "Untitled", media_type: str = "text") -> PipelineOutcome:
        """Run the full pipeline; raises the PipelineError subclass on fatal failure."""
        t0 = time.perf_counter()
        text = self._require_text(source_text)
        prompt = build_analysis_prompt(text, self.max_source_chars)
        generated = await self._generate(prompt)
        payload = parse_structured(generated.text, ContainerKind.OBJECT)
        result = assemble_result(payload.value, payload.sanitized)
        logger.info(
            "analyze: backend=%s sanitized=%s quiz=%s numericals=%s formulas=%s %.2fs",
            generated.backend,
            payload.sanitized,
            len(result.quiz),
            len(result.numericals),
            len(result.formulas),
            time.perf_counter() - t0,
        )
        memory_id = None
        if self.store is not None:
            memory_id = await asyncio.to_thread(
                self.store.save, result, title=title, media_type=media_type, source_text=text
            )
            logger.info("analyze: stored memory %s", memory_id)
        return PipelineOutcome(result=result, memory_id=memory_id, backend=generated.backend)

    async def run(self, source_text: str, *, title: str = "Untitled", media_type: str = "text") -> PipelineOutcome:
        """Like analyze, but taxonomy failures come back as PipelineOutcome.error instead of raising."""
        try:
            return await self.analyze(source_text, title=title, media_type=media_type)
        except PipelineError as e:
            logger.warning("analyze failed (%s): %s", e.kind, e)
            return PipelineOutcome(error=e)

    async def regenerate_quiz(self, source_text: str, count: int = 5) -> list[QuizRecord]:
        """Fresh quiz from stored text: expects a JSON array; nothing is persisted."""
        text = self._require_text(source_text)
        generated = await self._generate(build_quiz_prompt(text, count, self.max_source_chars))
        payload = parse_structured(generated.text, ContainerKind.ARRAY)
        questions = normalize_quiz(payload.value)
        if not questions:
            raise UnrecoverablePayload(ContainerKind.ARRAY.value, generated.text, "no valid quiz items")
        logger.info("regenerate_quiz: backend=%s questions=%s", generated.backend, len(questions))
        return questions
