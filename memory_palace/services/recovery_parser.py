"""
Recover one JSON object or array from free-form generator output.

Steps: strip markdown fences -> slice first opening to last closing bracket ->
direct json.loads -> one backslash-repair pass -> json.loads again.
Generators bracket their output reliably but often leave LaTeX backslashes
(\\sqrt, \\frac) unescaped; the repair pass doubles every backslash that does
not start a legal JSON escape. No permissive grammar beyond that.
"""
import json
import logging
import re
from enum import Enum
from typing import Any, NamedTuple

from memory_palace import metrics
from memory_palace.errors import NoStructuredPayload, UnrecoverablePayload

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_HEX = frozenset("0123456789abcdefABCDEF")
# Escapes that are always legal JSON
_SIMPLE_ESCAPES = frozenset('"\\/')
# Legal JSON escapes that are also the first letter of common LaTeX commands
_LETTER_ESCAPES = frozenset("bfnrt")

# LaTeX commands starting with b/f/n/r/t. "\frac" is valid JSON (form feed + "rac") but never meant that way.
LATEX_COMMANDS = frozenset({
    "backslash", "bar", "because", "begin", "beta", "bf", "binom", "bmod", "bmatrix", "boldsymbol",
    "bot", "bowtie", "box", "boxed", "breve", "bullet",
    "fbox", "flat", "footnote", "forall", "frac", "frak", "frown",
    "nabla", "natural", "ne", "nearrow", "neg", "neq", "newline", "nexists", "ngeq", "ngtr", "ni",
    "nleq", "nless", "nmid", "noindent", "nolimits", "norm", "not", "notin", "nparallel",
    "nsubseteq", "nsupseteq", "nu", "nwarrow",
    "rangle", "rbrace", "rbrack", "rceil", "rfloor", "rho", "right", "rightarrow",
    "rightharpoonup", "rightleftharpoons", "rm", "rmoustache", "root",
    "tan", "tanh", "tau", "tbinom", "tdot", "tfrac", "theta", "therefore", "thicksim",
    "tilde", "times", "tiny", "to", "top", "triangle", "triangleleft", "triangleright", "tt",
})
# Command families matched by prefix: \bigcup, \biggl, \Bigr, \textrm, \textsuperscript, ...
LATEX_PREFIXES = ("big", "text", "bold", "blacktriangle")
# Two-letter commands (\ne, \to, \nu ...) only count when followed by one of these or the end of the string;
# "\ne.g." is a newline before "e.g.", not "not equal".
_SHORT_COMMAND_FOLLOWERS = frozenset(" \t{}\\$_^()[]0123456789\"")


class ContainerKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"

    @property
    def brackets(self) -> tuple[str, str]:
        return ("{", "}") if self is ContainerKind.OBJECT else ("[", "]")


class ParsedPayload(NamedTuple):
    value: dict | list
    sanitized: bool


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers wherever they appear."""
    return _FENCE_RE.sub("", text or "").strip()


def slice_container(text: str, kind: ContainerKind) -> str | None:
    """First opening bracket through last closing bracket (inclusive), or None."""
    open_ch, close_ch = kind.brackets
    start = text.find(open_ch)
    end = text.rfind(close_ch)
    if start == -1 or end == -1 or end < start:
        return None
    return text[start : end + 1]


def _latex_word_at(text: str, i: int) -> str | None:
    """If text[i] is a backslash starting a known LaTeX command, return the command name."""
    j = i + 1
    while j < len(text) and text[j].isascii() and text[j].isalpha():
        j += 1
    word = text[i + 1 : j]
    if len(word) == 2:
        if word in LATEX_COMMANDS and (j == len(text) or text[j] in _SHORT_COMMAND_FOLLOWERS):
            return word
        return None
    if word in LATEX_COMMANDS or word.startswith(LATEX_PREFIXES):
        return word
    return None


def sanitize_backslashes(text: str) -> str:
    """Double every backslash that does not begin a legal JSON escape.

    Already-escaped pairs (\\\\) are copied through untouched. \\uXXXX needs four hex
    digits. \\b \\f \\n \\r \\t count as legal unless they begin a known LaTeX command.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1] if i + 1 < n else ""
        if nxt and nxt in _SIMPLE_ESCAPES:
            out.append(text[i : i + 2])
            i += 2
        elif nxt == "u" and len(text) >= i + 6 and all(c in _HEX for c in text[i + 2 : i + 6]):
            out.append(text[i : i + 6])
            i += 6
        elif nxt and nxt in _LETTER_ESCAPES and _latex_word_at(text, i) is None:
            out.append(text[i : i + 2])
            i += 2
        else:
            out.append("\\\\")
            i += 1
    return "".join(out)


def _has_latex_escape(text: str) -> bool:
    """True when an unescaped backslash starts a LaTeX command that json.loads would read as a control escape."""
    i = 0
    while i < len(text):
        if text[i] == "\\":
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if nxt in _LETTER_ESCAPES and _latex_word_at(text, i) is not None:
                return True
            i += 2
            continue
        i += 1
    return False


def parse_structured(text: str, kind: ContainerKind = ContainerKind.OBJECT) -> ParsedPayload:
    """
    Return the JSON value of the expected kind embedded in text.
    Raises NoStructuredPayload when no bracketed region exists and
    UnrecoverablePayload (keeping the original text) when it stays invalid after repair.
    """
    kind = ContainerKind(kind)
    cleaned = strip_code_fences(text)
    candidate = slice_container(cleaned, kind)
    if candidate is None:
        raise NoStructuredPayload(kind.value, text or "")

    if not _has_latex_escape(candidate):
        try:
            return ParsedPayload(json.loads(candidate), False)
        except json.JSONDecodeError as e:
            logger.info("Direct JSON parse failed (%s); trying backslash repair", e)

    repaired = sanitize_backslashes(candidate)
    try:
        value: Any = json.loads(repaired)
    except json.JSONDecodeError as e:
        logger.warning(
            "JSON %s unrecoverable after repair: %s. raw response (first 500 chars): %s",
            kind.value,
            e,
            (text[:500] + "..." if len(text) > 500 else text),
        )
        raise UnrecoverablePayload(kind.value, text, e) from e
    metrics.increment_sanitized_payloads()
    return ParsedPayload(value, True)
