"""
Pipeline tests: cascade -> recovery -> extraction -> normalization -> store, with fake backends.
"""
import asyncio
import json

import pytest

from memory_palace.errors import AllBackendsExhausted, EmptySourceText, NoStructuredPayload, UnrecoverablePayload
from memory_palace.llm import build_executor
from memory_palace.llm.base import BackendDescriptor, CascadeConfig
from memory_palace.llm.cascade import CascadeExecutor
from memory_palace.services.analysis_pipeline import (
    SUMMARY_UNAVAILABLE,
    PipelineOrchestrator,
    assemble_result,
    extract_roadmap,
)
from memory_palace.services.memory_store import InMemoryStore

SOURCE = "Newton's second law states that force equals mass times acceleration. " * 5


class ScriptedBackend:
    """Returns queued responses in order; an Exception entry is raised instead."""

    def __init__(self, name: str, *responses):
        self.name = name
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _orchestrator(*backends, store=None, **kwargs) -> PipelineOrchestrator:
    config = CascadeConfig(
        backends=tuple(BackendDescriptor(b.name, i) for i, b in enumerate(backends)),
        attempt_timeout_seconds=1.0,
    )
    return PipelineOrchestrator(CascadeExecutor(config, {b.name: b for b in backends}), store, **kwargs)


def _analysis_payload() -> dict:
    good = {
        "question": "What does F = ma relate?",
        "options": ["Force, mass, acceleration", "Energy and mass", "Speed and time", "Work and power"],
        "correctAnswer": "A",
        "explanation": "Second law.",
        "difficulty": "easy",
    }
    return {
        "summary": "  Newtonian mechanics basics. ",
        "patterns": ["force", "", 3, "acceleration"],
        "formulas": [{"expression": "F = ma", "description": "Second law"}, {"description": "no expression"}],
        "quiz": [good, {"question": "Broken item without options"}],
        "numericals": [
            {"relatedFormula": "F = ma", "problems": [dict(good, question=f"Problem {i}") for i in range(6)]},
            {"relatedFormula": "", "problems": [good]},
        ],
        "roadmap": [{"step": 1, "title": "Read", "description": "Read notes"}, {"title": "Practice"}, {"step": 3}],
        "diagram": "graph TD; Force-->Acceleration",
    }


def test_full_run_assembles_and_stores_result():
    store = InMemoryStore()
    backend = ScriptedBackend("primary", "```json\n" + json.dumps(_analysis_payload()) + "\n```")
    outcome = asyncio.run(_orchestrator(backend, store=store).run(SOURCE, title="Mechanics", media_type="pdf"))

    assert outcome.ok
    result = outcome.result
    assert result.summary == "Newtonian mechanics basics."
    assert result.patterns == ("force", "acceleration")
    assert [f.expression for f in result.formulas] == ["F = ma"]
    assert len(result.quiz) == 1
    assert result.quiz[0].correct_answer == "Force, mass, acceleration"
    assert len(result.numericals) == 1 and len(result.numericals[0].problems) == 6
    assert [(s.step, s.title) for s in result.roadmap] == [(1, "Read"), (2, "Practice")]
    assert result.diagram.startswith("graph TD")

    stored = store.get(outcome.memory_id)
    assert stored["title"] == "Mechanics"
    assert stored["quiz"][0]["correctAnswer"] == "Force, mass, acceleration"
    assert stored["numericals"][0]["relatedFormula"] == "F = ma"


def test_missing_optional_fields_default_to_empty():
    result = assemble_result({})
    assert result.summary == SUMMARY_UNAVAILABLE
    assert result.patterns == ()
    assert result.formulas == ()
    assert result.quiz == ()
    assert result.numericals == ()
    assert result.roadmap == ()
    assert result.diagram is None


def test_wrongly_typed_fields_do_not_abort():
    result = assemble_result({"summary": 5, "quiz": "none", "numericals": {"a": 1}, "roadmap": None, "patterns": "x"})
    assert result.summary == SUMMARY_UNAVAILABLE
    assert result.quiz == () and result.numericals == () and result.roadmap == () and result.patterns == ()


def test_roadmap_step_numbers():
    steps = extract_roadmap([{"step": "2", "title": "B"}, {"step": True, "title": "C"}, "junk"])
    assert [(s.step, s.title) for s in steps] == [(2, "B"), (2, "C")]


def test_sanitized_payload_is_flagged():
    backend = ScriptedBackend("primary", r'{"summary": "Uses \frac{a}{b}", "quiz": []}')
    outcome = asyncio.run(_orchestrator(backend).run(SOURCE))
    assert outcome.result.summary == r"Uses \frac{a}{b}"
    assert outcome.result.sanitized is True


def test_empty_source_fails_before_any_backend_call():
    backend = ScriptedBackend("primary", "{}")
    orchestrator = _orchestrator(backend)
    with pytest.raises(EmptySourceText):
        asyncio.run(orchestrator.analyze("   "))
    outcome = asyncio.run(orchestrator.run("too short"))
    assert outcome.error.kind == "empty_source_text"
    assert backend.prompts == []


def test_source_text_is_truncated_in_prompt():
    backend = ScriptedBackend("primary", '{"summary": "S"}')
    asyncio.run(_orchestrator(backend, max_source_chars=50).run("a" * 40 + "b" * 100))
    assert "a" * 40 + "b" * 10 in backend.prompts[0]
    assert "b" * 11 not in backend.prompts[0]


def test_prose_response_surfaces_no_structured_payload():
    store = InMemoryStore()
    backend = ScriptedBackend("primary", "Sorry, I cannot help with that.")
    outcome = asyncio.run(_orchestrator(backend, store=store).run(SOURCE))
    assert not outcome.ok
    assert isinstance(outcome.error, NoStructuredPayload)
    assert outcome.memory_id is None


def test_exhausted_cascade_surfaces_attempts():
    a = ScriptedBackend("a", RuntimeError("quota"))
    b = ScriptedBackend("b", RuntimeError("overloaded"))
    outcome = asyncio.run(_orchestrator(a, b).run(SOURCE))
    assert isinstance(outcome.error, AllBackendsExhausted)
    assert [x.backend for x in outcome.error.attempts] == ["a", "b"]


def test_outer_retry_reruns_the_whole_cascade():
    backend = ScriptedBackend("primary", RuntimeError("503 overloaded"), '{"summary": "second try"}')
    orchestrator = _orchestrator(backend, retry_attempts=2, retry_max_wait=0)
    outcome = asyncio.run(orchestrator.run(SOURCE))
    assert outcome.result.summary == "second try"
    assert len(backend.prompts) == 2


def test_regenerate_quiz_parses_array():
    items = [
        {"question": "Q1", "options": ["a", "b"], "correctAnswer": "b"},
        {"question": "Q2"},
    ]
    backend = ScriptedBackend("primary", "Here you go: " + json.dumps(items))
    questions = asyncio.run(_orchestrator(backend).regenerate_quiz(SOURCE, count=2))
    assert [q.question for q in questions] == ["Q1"]
    assert questions[0].correct_answer == "b"
    assert "EXACTLY 2" in backend.prompts[0]


def test_regenerate_quiz_with_nothing_usable_is_unrecoverable():
    backend = ScriptedBackend("primary", '[{"question": "no options"}]')
    with pytest.raises(UnrecoverablePayload):
        asyncio.run(_orchestrator(backend).regenerate_quiz(SOURCE))


def test_mock_backend_runs_end_to_end_on_worker_thread():
    """The synchronous mock goes through the thread path and the fenced-JSON recovery path."""
    executor = build_executor(CascadeConfig(backends=(BackendDescriptor("mock", 0),)))
    try:
        outcome = asyncio.run(PipelineOrchestrator(executor).run(SOURCE))
    finally:
        executor.shutdown()
    assert outcome.ok
    assert outcome.backend == "mock"
    assert len(outcome.result.quiz) == 5
    assert outcome.result.quiz[0].correct_answer == "Option A (mock)"
    assert outcome.result.numericals[0].related_formula == "F = m*a"
