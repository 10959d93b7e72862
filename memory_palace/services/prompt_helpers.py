"""
Prompt builders for the analysis call (one JSON object) and quiz regeneration (one JSON array).
"""

QUIZ_ARRAY_INSTRUCTION = "Return ONLY a JSON array"

ANALYSIS_PROMPT_TEMPLATE = """You are an expert teacher. Analyze this text and return a valid JSON object.

STRUCTURE REQUIREMENTS:
1. formulas: Extract key mathematical formulas {{"expression": "E=mc^2", "description": "..."}}.
2. quiz: Exactly 5 conceptual multiple-choice questions (theory). Difficulty: 2 easy, 2 medium, 1 hard.
   correctAnswer MUST exactly match one of the option strings (no A/B/C/D letters).
3. numericals:
   - IF formulas are found: create a set for EACH formula.
   - Inside each set: exactly 6 math problems (1 easy, 4 medium, 1 hard), same structure as quiz.
   - IF NO formulas: return an empty array [].
4. summary: Clear, concise summary.
5. patterns: Key concepts as short keywords.
6. roadmap: Ordered learning steps.
7. diagram: Optional Mermaid flowchart (text) of how the main concepts connect, or null.

Escape backslashes in strings (write \\\\frac, not \\frac). JSON FORMAT ONLY (no markdown):
{{
  "summary": "...",
  "patterns": ["concept1", "concept2"],
  "formulas": [{{"expression": "...", "description": "..."}}],
  "quiz": [
    {{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswer": "...", "difficulty": "medium", "explanation": "..."}}
  ],
  "numericals": [
    {{"relatedFormula": "F = m*a", "problems": [ ...same structure as quiz... ]}}
  ],
  "roadmap": [{{"step": 1, "title": "...", "description": "..."}}],
  "diagram": "graph TD; A-->B"
}}

Text to analyze:
{text}
"""

QUIZ_PROMPT_TEMPLATE = """Generate EXACTLY {count} multiple-choice questions.

Rules:
- correctAnswer MUST exactly match one option string
- No A/B/C/D letters
- difficulty is one of easy, medium, hard
- {array_instruction} (no explanation, no markdown)

Format:
[
  {{
    "question": "Question text",
    "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
    "correctAnswer": "Option 1",
    "explanation": "Short explanation",
    "difficulty": "medium"
  }}
]

Text:
{text}
"""


def truncate_source(text: str, max_chars: int) -> str:
    return (text or "").strip()[: max(0, max_chars)]


def build_analysis_prompt(text: str, max_chars: int) -> str:
    return ANALYSIS_PROMPT_TEMPLATE.format(text=truncate_source(text, max_chars))


def build_quiz_prompt(text: str, count: int, max_chars: int) -> str:
    return QUIZ_PROMPT_TEMPLATE.format(
        count=max(1, count),
        array_instruction=QUIZ_ARRAY_INSTRUCTION,
        text=truncate_source(text, max_chars),
    )
