from tutor.agents.adaptation import normalize_difficulty


def grade_answer(user_answer: str, correct_answer: str) -> bool:
    return (user_answer or "").strip().upper() == (correct_answer or "").strip().upper()


def compute_accuracy(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(100 * correct / total)


def feedback_message(is_correct: bool, accuracy: int) -> str:
    if is_correct:
        if accuracy >= 80:
            return "Excellent! You're mastering this topic. Ready for a challenge?"
        if accuracy >= 60:
            return "Good job! You're building strong understanding."
        return "Correct! You're on the right track."
    if accuracy < 40:
        return "Don't worry! Let's focus on the basics. You're learning!"
    if accuracy < 60:
        return "Not quite right, but you're making progress. Keep practicing!"
    return "Close! Let's review this concept together."


_CORRECT_HINTS = {
    "easy": "Keep this up and we'll try medium questions!",
    "medium": "Great progress! Hard questions coming soon.",
    "hard": "Excellent mastery! You're at the highest level.",
}
_INCORRECT_HINTS = {
    "hard": "Let's try some medium level questions to build confidence.",
    "medium": "Let's review basics with easier questions.",
    "easy": "Focus on understanding fundamentals first.",
}


def next_difficulty_hint(is_correct: bool, difficulty: str) -> str:
    hints = _CORRECT_HINTS if is_correct else _INCORRECT_HINTS
    return hints[normalize_difficulty(difficulty)]


def assess_submission(*, is_correct: bool, correct: int, total: int, difficulty: str) -> dict:
    accuracy = compute_accuracy(correct, total)
    return {
        "accuracy": accuracy,
        "message": feedback_message(is_correct, accuracy),
        "next_difficulty_hint": next_difficulty_hint(is_correct, difficulty),
    }
