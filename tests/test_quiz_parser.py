from __future__ import annotations

from tutor.core.quiz_parser import (
    DEFAULT_EXPLANATION,
    FALLBACK_EXPLANATION,
    FALLBACK_OPTIONS,
    FALLBACK_QUESTION,
    parse_quiz_response,
)

WELL_FORMED = "QUESTION: What is 2+2?\nA) 3\nB) 4\nC) 5\nD) 6\nANSWER: B\nEXPLANATION: Basic addition."


def test_well_formed_reply_is_parsed_exactly():
    parsed = parse_quiz_response(WELL_FORMED, "easy")
    assert parsed.question == "What is 2+2?"
    assert parsed.options == ["3", "4", "5", "6"]
    assert parsed.correct_answer == "B"
    assert parsed.explanation == "Basic addition."
    assert parsed.difficulty == "easy"


def test_unusable_reply_falls_back_to_fixed_question():
    parsed = parse_quiz_response("I cannot generate a question right now.", "medium")
    assert parsed.question == FALLBACK_QUESTION
    assert parsed.options == FALLBACK_OPTIONS
    assert parsed.correct_answer == "A"
    assert parsed.explanation == FALLBACK_EXPLANATION
    assert parsed.difficulty == "medium"


def test_empty_and_none_replies_never_raise():
    assert parse_quiz_response("", "hard").options == FALLBACK_OPTIONS
    assert parse_quiz_response(None, "hard").question == FALLBACK_QUESTION


def test_fallback_options_are_a_fresh_copy():
    parsed = parse_quiz_response("nothing here", "easy")
    parsed.options.append("E")
    assert len(FALLBACK_OPTIONS) == 4


def test_numbered_question_and_alternative_option_markers():
    raw = (
        "Here is your question.\n"
        "1. Find the roots of x² - 5x + 6 = 0\n"
        "A. x = 2, 3\n"
        "B: x = -2, -3\n"
        "C. x = 1, 6\n"
        "D: x = -1, -6\n"
        "Answer: a\n"
    )
    parsed = parse_quiz_response(raw, "medium")
    assert parsed.question == "Find the roots of x² - 5x + 6 = 0"
    assert parsed.options == ["x = 2, 3", "x = -2, -3", "x = 1, 6", "x = -1, -6"]
    assert parsed.correct_answer == "A"
    assert parsed.explanation == DEFAULT_EXPLANATION


def test_question_mark_line_used_when_unlabelled():
    raw = "Sure!\nWhich of these is a quadratic polynomial?\nA) x + 1\nB) x² + 1\nC) 5\nD) x³\nANSWER: B"
    assert parse_quiz_response(raw, "easy").question == "Which of these is a quadratic polynomial?"


def test_keyword_line_used_when_no_question_mark():
    raw = "Ok\nCalculate the discriminant of x² + 4x + 4\nA) 0\nB) 4\nC) 8\nD) 16\nANSWER: A"
    assert parse_quiz_response(raw, "easy").question == "Calculate the discriminant of x² + 4x + 4"


def test_first_substantial_line_is_last_resort():
    raw = "Ok\nThe sum of zeroes of 2x² - 8x + 6 equals\nA) 4\nB) 3\nC) -4\nD) 8\nANSWER: A"
    assert parse_quiz_response(raw, "easy").question == "The sum of zeroes of 2x² - 8x + 6 equals"


def test_extra_options_are_truncated_to_four():
    raw = "QUESTION: Pick one?\nA) 1\nB) 2\nC) 3\nD) 4\nA) 5\nANSWER: D"
    parsed = parse_quiz_response(raw, "easy")
    assert parsed.options == ["1", "2", "3", "4"]
    assert parsed.correct_answer == "D"


def test_duplicate_alternative_options_are_not_counted_twice():
    raw = "QUESTION: Pick?\nA) 1\nB) 2\nA. 1\nB. 2\nANSWER: A"
    assert parse_quiz_response(raw, "easy").question == FALLBACK_QUESTION


def test_indented_labels_are_recognised():
    raw = "  QUESTION: What is 3x3?\n  A) 6\n  B) 9\n  C) 12\n  D) 33\n  ANSWER: b\n  EXPLANATION: Three threes."
    parsed = parse_quiz_response(raw, "easy")
    assert parsed.question == "What is 3x3?"
    assert parsed.correct_answer == "B"
    assert parsed.explanation == "Three threes."
