from __future__ import annotations

import pytest

from tutor.agents.assessment import (
    assess_submission,
    compute_accuracy,
    feedback_message,
    grade_answer,
    next_difficulty_hint,
)
from tutor.core.errors import SessionNotFoundError
from tutor.memory.context import (
    QuizContext,
    compute_mastery,
    default_context,
    load_chat_context,
    load_quiz_context,
    with_difficulty,
)
from tutor.memory.tracker import record_quiz_answer


def test_accuracy_rounds_and_handles_empty_sessions():
    assert compute_accuracy(3, 4) == 75
    assert compute_accuracy(0, 0) == 0
    assert compute_accuracy(2, 3) == 67
    assert compute_mastery(1, 3) == 33
    assert compute_mastery(5, 0) == 0


def test_grading_is_case_insensitive():
    assert grade_answer("b", "B") is True
    assert grade_answer(" C ", "c") is True
    assert grade_answer("A", "B") is False


@pytest.mark.parametrize(
    ("is_correct", "accuracy", "prefix"),
    [
        (True, 80, "Excellent!"),
        (True, 60, "Good job!"),
        (True, 59, "Correct!"),
        (False, 39, "Don't worry!"),
        (False, 40, "Not quite right"),
        (False, 60, "Close!"),
    ],
)
def test_feedback_bands(is_correct, accuracy, prefix):
    assert feedback_message(is_correct, accuracy).startswith(prefix)


def test_next_difficulty_hints():
    assert next_difficulty_hint(True, "easy") == "Keep this up and we'll try medium questions!"
    assert next_difficulty_hint(True, "hard") == "Excellent mastery! You're at the highest level."
    assert next_difficulty_hint(False, "hard") == "Let's try some medium level questions to build confidence."
    assert next_difficulty_hint(False, "easy") == "Focus on understanding fundamentals first."


def test_assess_submission_combines_counters():
    out = assess_submission(is_correct=True, correct=3, total=4, difficulty="medium")
    assert out == {
        "accuracy": 75,
        "message": "Good job! You're building strong understanding.",
        "next_difficulty_hint": "Great progress! Hard questions coming soon.",
    }


def test_default_context_is_the_single_fallback_shape():
    ctx = default_context(9, "Probability")
    assert ctx.mastery == 0
    assert ctx.gaps == ["Basic concepts"]
    assert ctx.current_difficulty == "easy"
    assert ctx.conversation_history == []
    assert ctx.subject == "General Studies"
    assert with_difficulty(ctx, "hard").current_difficulty == "hard"
    assert ctx.current_difficulty == "easy"


class BrokenSession:
    def __init__(self):
        self.rollbacks = 0

    async def get(self, *args, **kwargs):
        raise ConnectionError("database unavailable")

    async def rollback(self):
        self.rollbacks += 1


class EmptySession:
    async def get(self, *args, **kwargs):
        return None

    async def rollback(self):
        return None


@pytest.mark.asyncio
async def test_context_loaders_fall_back_to_defaults_on_failure():
    db = BrokenSession()

    chat_ctx = await load_chat_context(db, 4, "Polynomials")
    quiz_ctx = await load_quiz_context(db, 4, "Polynomials")

    assert chat_ctx == default_context(4, "Polynomials")
    assert isinstance(quiz_ctx, QuizContext)
    assert quiz_ctx.current_difficulty == "medium"
    assert (quiz_ctx.consecutive_correct, quiz_ctx.consecutive_wrong) == (0, 0)
    assert db.rollbacks == 2


@pytest.mark.asyncio
async def test_recording_answer_for_unknown_session_raises_not_found():
    with pytest.raises(SessionNotFoundError) as excinfo:
        await record_quiz_answer(
            EmptySession(),
            404,
            question="q",
            user_answer="A",
            correct_answer="B",
            is_correct=False,
        )
    assert excinfo.value.session_id == 404
