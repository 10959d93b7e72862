"""
Mock backend: deterministic placeholder analysis when no API key is set.
Synchronous on purpose, like a blocking SDK; the cascade runs it on a worker thread.
"""
import hashlib
import json
import logging

from memory_palace.services.prompt_helpers import QUIZ_ARRAY_INSTRUCTION

logger = logging.getLogger(__name__)


def _mock_quiz(seed: str, n: int) -> list[dict]:
    diffs = ["easy", "easy", "medium", "medium", "hard"]
    return [
        {
            "question": f"[Mock] Question {i + 1} (seed {seed}): What is the main idea of the given text?",
            "options": ["Option A (mock)", "Option B (mock)", "Option C (mock)", "Option D (mock)"],
            "correctAnswer": ["A", "B", "C", "D"][i % 4],
            "explanation": f"Mock explanation for question {i + 1}. Set GEMINI_API_KEY in .env for real generation.",
            "difficulty": diffs[i % len(diffs)],
        }
        for i in range(n)
    ]


class MockBackend:
    """Returns fenced JSON (like real models often do) so the full parse path runs without an API key."""

    name = "mock"

    def generate(self, prompt: str) -> str:
        seed = hashlib.sha256(prompt[-400:].encode()).hexdigest()[:8]
        if QUIZ_ARRAY_INSTRUCTION in prompt:
            return "```json\n" + json.dumps(_mock_quiz(seed, 5)) + "\n```"
        payload = {
            "summary": f"[Mock] Summary of the uploaded material (seed {seed}).",
            "patterns": ["mock", "placeholder"],
            "formulas": [{"expression": "F = m*a", "description": "Newton's second law (mock)"}],
            "quiz": _mock_quiz(seed, 5),
            "numericals": [{"relatedFormula": "F = m*a", "problems": _mock_quiz(seed, 6)}],
            "roadmap": [
                {"step": 1, "title": "Read the summary", "description": "Skim the key ideas."},
                {"step": 2, "title": "Take the quiz", "description": "Check understanding."},
            ],
            "diagram": None,
        }
        return "Here is the analysis:\n```json\n" + json.dumps(payload) + "\n```"


def get_mock_backend() -> MockBackend:
    return MockBackend()
