"""Unit tests for formula-grouped numerical sets."""
from memory_palace.services.numerical_normalizer import normalize_numerical_set, normalize_numericals


def _problem(i: int, **overrides) -> dict:
    p = {
        "question": f"A {i} kg mass accelerates at 2 m/s^2. Force?",
        "options": [f"{2 * i} N", f"{i} N", f"{4 * i} N", "0 N"],
        "correctAnswer": "A",
        "difficulty": "medium",
        "explanation": "F = m*a",
    }
    p.update(overrides)
    return p


def test_set_keeps_formula_and_drops_only_malformed_problems():
    """6 problems with one missing options -> same formula, 5 problems."""
    problems = [_problem(i) for i in range(1, 7)]
    del problems[3]["options"]
    out = normalize_numericals([{"relatedFormula": "F=ma", "problems": problems}])
    assert len(out) == 1
    assert out[0].related_formula == "F=ma"
    assert len(out[0].problems) == 5
    assert all(p.correct_answer in p.options for p in out[0].problems)


def test_set_without_formula_is_dropped():
    assert normalize_numerical_set({"problems": [_problem(1)]}) is None
    assert normalize_numerical_set({"relatedFormula": "   ", "problems": [_problem(1)]}) is None
    assert normalize_numerical_set({"relatedFormula": 42, "problems": [_problem(1)]}) is None


def test_set_with_no_surviving_problems_is_dropped():
    assert normalize_numerical_set({"relatedFormula": "v = u + at", "problems": []}) is None
    assert normalize_numerical_set({"relatedFormula": "v = u + at", "problems": [{"question": "Q?"}]}) is None
    assert normalize_numerical_set({"relatedFormula": "v = u + at"}) is None


def test_input_order_preserved():
    sets = [
        {"relatedFormula": "p = mv", "problems": [_problem(1)]},
        {"relatedFormula": "broken"},
        {"relatedFormula": "E = mc^2", "problems": [_problem(2)]},
        {"relatedFormula": "F = ma", "problems": [_problem(3)]},
    ]
    out = normalize_numericals(sets)
    assert [s.related_formula for s in out] == ["p = mv", "E = mc^2", "F = ma"]


def test_non_list_numericals_is_empty():
    assert normalize_numericals(None) == []
    assert normalize_numericals("none") == []
