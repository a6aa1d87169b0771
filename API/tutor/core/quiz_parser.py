"""
Tolerant parser for generated multiple-choice questions.

Each field is extracted by an ordered list of small strategies; the first strategy that
returns a value wins. `parse_quiz_response` never raises: when fewer than four options can
be recovered the whole question is replaced by a fixed, self-consistent fallback.
"""
import re
from collections.abc import Callable
from dataclasses import dataclass

from tutor.core.logging import DOMAIN_QUIZ, get_domain_logger

logger = get_domain_logger(__name__, DOMAIN_QUIZ)

FALLBACK_QUESTION = "What are the solutions to x² + 5x + 6 = 0?"
FALLBACK_OPTIONS = ["x = -2, -3", "x = -1, -6", "x = 2, 3", "x = 1, 6"]
FALLBACK_ANSWER = "A"
FALLBACK_EXPLANATION = "Using factoring method: x² + 5x + 6 = (x + 2)(x + 3) = 0, so x = -2 or x = -3"
DEFAULT_EXPLANATION = "No explanation provided."
OPTION_COUNT = 4

_QUESTION_LABEL = re.compile(r"^question\s*:\s*", re.IGNORECASE)
_ORDINAL = re.compile(r"^\d+\.\s+")
_QUESTION_WORDS = re.compile(r"solve|find|calculate|what|which|how", re.IGNORECASE)
_PAREN_OPTION = re.compile(r"^[A-D]\)\s*(.+)", re.IGNORECASE)
_ALT_OPTION = re.compile(r"^[A-D][.:]\s*(.+)", re.IGNORECASE)
_ANSWER = re.compile(r"^answer\s*:\s*(\S)", re.IGNORECASE)
_EXPLANATION = re.compile(r"^explanation\s*:\s*(.+)", re.IGNORECASE)


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: list[str]
    correct_answer: str
    explanation: str
    difficulty: str


Strategy = Callable[[list[str]], str | None]


def _labelled_question(lines: list[str]) -> str | None:
    for line in lines:
        if _QUESTION_LABEL.match(line):
            return _QUESTION_LABEL.sub("", line).strip() or None
    return None


def _numbered_question(lines: list[str]) -> str | None:
    for line in lines:
        if _ORDINAL.match(line):
            return _ORDINAL.sub("", line).strip() or None
    return None


def _interrogative_line(lines: list[str]) -> str | None:
    return next((line for line in lines if line.endswith("?")), None)


def _keyword_line(lines: list[str]) -> str | None:
    return next((line for line in lines if _QUESTION_WORDS.search(line) and len(line) > 10), None)


def _first_substantial_line(lines: list[str]) -> str | None:
    for line in lines:
        lowered = line.lower()
        if len(line) > 10 and not _PAREN_OPTION.match(line) and "answer" not in lowered and "explanation" not in lowered:
            return line
    return None


QUESTION_STRATEGIES: list[Strategy] = [
    _labelled_question,
    _numbered_question,
    _interrogative_line,
    _keyword_line,
    _first_substantial_line,
]


def _first_match(strategies: list[Strategy], lines: list[str]) -> str | None:
    for strategy in strategies:
        value = strategy(lines)
        if value:
            return value
    return None


def extract_options(lines: list[str]) -> list[str]:
    options = [m.group(1).strip() for m in map(_PAREN_OPTION.match, lines) if m]
    if len(options) < OPTION_COUNT:
        for match in map(_ALT_OPTION.match, lines):
            if match and match.group(1).strip() not in options:
                options.append(match.group(1).strip())
    return options


def extract_answer(lines: list[str]) -> str:
    for line in lines:
        match = _ANSWER.match(line)
        if match:
            return match.group(1).upper()
    return FALLBACK_ANSWER


def extract_explanation(lines: list[str]) -> str:
    for line in lines:
        match = _EXPLANATION.match(line)
        if match:
            return match.group(1).strip()
    return DEFAULT_EXPLANATION


def fallback_question(difficulty: str) -> QuizQuestion:
    return QuizQuestion(
        question=FALLBACK_QUESTION,
        options=list(FALLBACK_OPTIONS),
        correct_answer=FALLBACK_ANSWER,
        explanation=FALLBACK_EXPLANATION,
        difficulty=difficulty,
    )


def parse_quiz_response(raw_text: str | None, difficulty: str) -> QuizQuestion:
    lines = [line.strip() for line in (raw_text or "").splitlines() if line.strip()]

    options = extract_options(lines)
    if len(options) < OPTION_COUNT:
        logger.info("Generated quiz had %d usable options, serving fallback question", len(options))
        return fallback_question(difficulty)

    return QuizQuestion(
        question=_first_match(QUESTION_STRATEGIES, lines) or FALLBACK_QUESTION,
        options=options[:OPTION_COUNT],
        correct_answer=extract_answer(lines),
        explanation=extract_explanation(lines),
        difficulty=difficulty,
    )
