from collections.abc import Iterable

from tutor.models.entities import DIFFICULTY_LEVELS

STREAK_THRESHOLD = 2

_STEP_DOWN = {"hard": "medium", "medium": "easy", "easy": "easy"}
_STEP_UP = {"easy": "medium", "medium": "hard", "hard": "hard"}


def normalize_difficulty(value: str | None, default: str = "medium") -> str:
    level = (value or "").strip().lower()
    return level if level in DIFFICULTY_LEVELS else default


def next_difficulty(consecutive_correct: int, consecutive_wrong: int, current: str) -> str:
    """
    Two wrong in a row steps down, two right in a row steps up, anything else holds.

    The wrong-streak check runs first so the outcome is deterministic even if both
    counters somehow reach the threshold.
    """
    current = normalize_difficulty(current)
    if consecutive_wrong >= STREAK_THRESHOLD:
        return _STEP_DOWN[current]
    if consecutive_correct >= STREAK_THRESHOLD:
        return _STEP_UP[current]
    return current


def compute_streaks(recent_results: Iterable[bool]) -> tuple[int, int]:
    """
    Count the run of identical results starting at the newest one.

    `recent_results` is ordered newest first. Returns (consecutive_correct, consecutive_wrong);
    only the counter matching the run's polarity is non-zero.
    """
    streak_value: bool | None = None
    run = 0
    for is_correct in recent_results:
        if streak_value is None:
            streak_value = bool(is_correct)
            run = 1
        elif bool(is_correct) == streak_value:
            run += 1
        else:
            break
    if streak_value is None:
        return 0, 0
    return (run, 0) if streak_value else (0, run)


def difficulty_from_mastery(mastery: int) -> str:
    if mastery < 40:
        return "easy"
    if mastery < 75:
        return "medium"
    return "hard"


def identify_knowledge_gaps(mastery: int) -> list[str]:
    if mastery < 30:
        return ["Basic concepts", "Fundamental formulas", "Simple calculations"]
    if mastery < 60:
        return ["Application problems", "Multi-step solutions"]
    if mastery < 85:
        return ["Complex problem-solving", "Concept connections"]
    return ["Advanced applications", "Examination techniques"]


_MATH_KEYWORDS = ("quadratic", "polynomial", "algebra", "geometry", "trigonometry", "statistics")
_SCIENCE_KEYWORDS = ("chemical", "physics", "biology", "chemistry")


def subject_from_topic(topic: str) -> str:
    topic_lower = (topic or "").lower()
    if any(keyword in topic_lower for keyword in _MATH_KEYWORDS):
        return "Mathematics"
    if any(keyword in topic_lower for keyword in _SCIENCE_KEYWORDS):
        return "Science"
    return "General Studies"


def analyze_performance(mastery: int, consecutive_correct: int, consecutive_wrong: int) -> str:
    if consecutive_correct >= STREAK_THRESHOLD:
        return "Improving - ready for harder questions"
    if consecutive_wrong >= STREAK_THRESHOLD:
        return "Struggling - needs concept reinforcement"
    if mastery > 80:
        return "Strong - maintaining high performance"
    if mastery < 40:
        return "Developing - building foundational skills"
    return "Steady - consistent learning progress"
