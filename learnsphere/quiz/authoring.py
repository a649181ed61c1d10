# learnsphere/quiz/authoring.py
"""Editing rules for quiz questions that keep the correct-option index valid."""

import copy
from typing import Any, Dict, List, Optional

MIN_OPTIONS = 2

Question = Dict[str, Any]


class QuizAuthoringError(ValueError):
    pass


def _question_at(questions: List[Question], question_index: int) -> Question:
    if not 0 <= question_index < len(questions):
        raise QuizAuthoringError(f"Invalid question index: {question_index}")
    return questions[question_index]


def validate_question(question: Question) -> None:
    options = question.get("options") or []
    if len(options) < MIN_OPTIONS:
        raise QuizAuthoringError(f"A question needs at least {MIN_OPTIONS} options")
    correct = question.get("correct_answer")
    if not isinstance(correct, int) or not 0 <= correct < len(options):
        raise QuizAuthoringError(
            f"Correct answer index {correct} is out of range for {len(options)} options"
        )


def new_question(
    question_text: str = "New Question",
    options: Optional[List[str]] = None,
    correct_answer: int = 0,
    explanation: Optional[str] = None,
) -> Question:
    question = {
        "question_text": question_text,
        "options": list(options) if options else ["Option 1", "Option 2"],
        "correct_answer": correct_answer,
        "explanation": explanation,
    }
    validate_question(question)
    return question


def add_question(questions: List[Question], question: Question) -> List[Question]:
    validate_question(question)
    return copy.deepcopy(questions) + [copy.deepcopy(question)]


def delete_question(questions: List[Question], question_index: int) -> List[Question]:
    _question_at(questions, question_index)
    return [copy.deepcopy(q) for i, q in enumerate(questions) if i != question_index]


def add_option(
    questions: List[Question], question_index: int, text: Optional[str] = None
) -> List[Question]:
    updated = copy.deepcopy(questions)
    question = _question_at(updated, question_index)
    options = question.setdefault("options", [])
    options.append(text or f"Option {len(options) + 1}")
    return updated


def remove_option(
    questions: List[Question], question_index: int, option_index: int
) -> List[Question]:
    """
    Remove an option and shift the correct index with it.

    The correct index moves down by one when the removed option sits at or
    before it, unless it is already 0.
    """
    updated = copy.deepcopy(questions)
    question = _question_at(updated, question_index)
    options = question.get("options") or []

    if not 0 <= option_index < len(options):
        raise QuizAuthoringError(f"Invalid option index: {option_index}")
    if len(options) <= MIN_OPTIONS:
        raise QuizAuthoringError(f"A question needs at least {MIN_OPTIONS} options")

    question["options"] = [o for i, o in enumerate(options) if i != option_index]
    correct = question.get("correct_answer", 0)
    if correct >= option_index and correct > 0:
        question["correct_answer"] = correct - 1
    return updated


def set_correct_option(
    questions: List[Question], question_index: int, option_index: int
) -> List[Question]:
    updated = copy.deepcopy(questions)
    question = _question_at(updated, question_index)
    if not 0 <= option_index < len(question.get("options") or []):
        raise QuizAuthoringError(f"Invalid option index: {option_index}")
    question["correct_answer"] = option_index
    return updated
