"""
Tests for quiz question editing rules
"""

import pytest

from learnsphere.quiz.authoring import (
    QuizAuthoringError,
    add_option,
    add_question,
    delete_question,
    new_question,
    remove_option,
    set_correct_option,
)


def make_questions(correct=2):
    return [
        {
            "question_text": "Pick one",
            "options": ["A", "B", "C", "D"],
            "correct_answer": correct,
            "explanation": None,
        }
    ]


def test_new_question_defaults():
    question = new_question()
    assert question["question_text"] == "New Question"
    assert question["options"] == ["Option 1", "Option 2"]
    assert question["correct_answer"] == 0


def test_new_question_rejects_out_of_range_answer():
    with pytest.raises(QuizAuthoringError):
        new_question(options=["A", "B"], correct_answer=2)


def test_add_and_delete_question_do_not_mutate_input():
    questions = make_questions()
    added = add_question(questions, new_question("Another"))
    assert len(added) == 2
    assert len(questions) == 1

    remaining = delete_question(added, 0)
    assert [q["question_text"] for q in remaining] == ["Another"]

    with pytest.raises(QuizAuthoringError):
        delete_question(added, 5)


def test_add_option_numbers_placeholder():
    updated = add_option(make_questions(), 0)
    assert updated[0]["options"][-1] == "Option 5"
    updated = add_option(make_questions(), 0, "E")
    assert updated[0]["options"][-1] == "E"


def test_removing_option_before_correct_shifts_index_down():
    updated = remove_option(make_questions(correct=2), 0, 0)
    assert updated[0]["options"] == ["B", "C", "D"]
    assert updated[0]["correct_answer"] == 1
    assert updated[0]["options"][updated[0]["correct_answer"]] == "C"


def test_removing_option_after_correct_keeps_index():
    updated = remove_option(make_questions(correct=1), 0, 3)
    assert updated[0]["correct_answer"] == 1


def test_removing_the_correct_option_points_at_previous_one():
    updated = remove_option(make_questions(correct=2), 0, 2)
    assert updated[0]["correct_answer"] == 1


def test_removing_first_option_when_it_is_correct_stays_at_zero():
    updated = remove_option(make_questions(correct=0), 0, 0)
    assert updated[0]["correct_answer"] == 0
    assert updated[0]["options"] == ["B", "C", "D"]


def test_cannot_drop_below_two_options():
    questions = [{"question_text": "Q", "options": ["A", "B"], "correct_answer": 0}]
    with pytest.raises(QuizAuthoringError):
        remove_option(questions, 0, 1)


def test_invalid_option_index_is_rejected():
    with pytest.raises(QuizAuthoringError):
        remove_option(make_questions(), 0, 4)
    with pytest.raises(QuizAuthoringError):
        set_correct_option(make_questions(), 0, 4)


def test_set_correct_option():
    updated = set_correct_option(make_questions(correct=2), 0, 3)
    assert updated[0]["correct_answer"] == 3
