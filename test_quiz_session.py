"""
Tests for the quiz attempt state machine and reward tables
"""

import pytest

from learnsphere.quiz.rewards import normalize_rewards, points_for_attempt, to_storage
from learnsphere.quiz.session import (
    InvalidAnswerError,
    QuizSession,
    QuizSessionError,
    QuizState,
)

QUESTIONS = [
    {"question_text": "Q1", "options": ["a", "b", "c"], "correct_answer": 1},
    {"question_text": "Q2", "options": ["a", "b", "c"], "correct_answer": 0},
    {"question_text": "Q3", "options": ["a", "b", "c"], "correct_answer": 2},
]
REWARDS = {1: 100, 2: 50, 3: 25}


class RecordingTracker:
    def __init__(self):
        self.passed = []
        self.failed = []

    def on_quiz_passed(self, points):
        self.passed.append(points)

    def on_quiz_failed(self, failed_attempts):
        self.failed.append(failed_attempts)


def answer_all(session, answers):
    for index, option in enumerate(answers):
        session.select_answer(index, option)
    result = None
    for _ in range(session.total_questions):
        result = session.advance()
    return result


# ==================== Rewards ====================


def test_points_for_configured_attempts():
    assert points_for_attempt(REWARDS, 1) == 100
    assert points_for_attempt(REWARDS, 2) == 50
    assert points_for_attempt(REWARDS, 3) == 25


def test_points_clamp_to_overflow_tier():
    assert points_for_attempt(REWARDS, 4) == 25
    assert points_for_attempt(REWARDS, 40) == 25


def test_points_use_greatest_tier_below_gaps():
    assert points_for_attempt({1: 100, 5: 10}, 3) == 100
    assert points_for_attempt({1: 100, 5: 10}, 6) == 10


def test_stored_reward_tables_have_string_keys():
    stored = to_storage(REWARDS)
    assert stored == {"1": 100, "2": 50, "3": 25}
    assert normalize_rewards(stored) == REWARDS


@pytest.mark.parametrize("table", [{}, {2: 50}, {0: 10, 1: 5}, {1: -5}])
def test_invalid_reward_tables_are_rejected(table):
    with pytest.raises(ValueError):
        normalize_rewards(table)


def test_attempt_numbers_start_at_one():
    with pytest.raises(ValueError):
        points_for_attempt(REWARDS, 0)


# ==================== State machine ====================


def test_new_session_is_not_started():
    session = QuizSession(QUESTIONS, REWARDS)
    assert session.state == QuizState.NOT_STARTED
    assert session.attempt_number == 1
    assert session.current_reward == 100


def test_cannot_answer_before_start():
    session = QuizSession(QUESTIONS, REWARDS)
    with pytest.raises(QuizSessionError):
        session.select_answer(0, 1)


def test_empty_quiz_cannot_start():
    session = QuizSession([], REWARDS)
    with pytest.raises(QuizSessionError):
        session.start()


def test_all_correct_passes_with_first_attempt_reward():
    tracker = RecordingTracker()
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    for index, option in enumerate([1, 0, 2]):
        session.select_answer(index, option)
    session.advance()
    session.advance()
    result = session.advance(tracker=tracker)

    assert result.score == 3
    assert result.total == 3
    assert result.passed is True
    assert result.points == 100
    assert session.state == QuizState.PASSED
    assert session.attempt_number == 1
    assert tracker.passed == [100]
    assert tracker.failed == []


def test_one_wrong_answer_fails_and_bumps_attempt():
    tracker = RecordingTracker()
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    for index, option in enumerate([1, 0, 0]):
        session.select_answer(index, option)
    session.advance()
    session.advance()
    result = session.advance(tracker=tracker)

    assert result.score == 2
    assert result.passed is False
    assert result.points == 0
    assert result.attempt_number == 1
    assert session.state == QuizState.FAILED
    assert session.attempt_number == 2
    assert tracker.passed == []
    assert tracker.failed == [1]


def test_unanswered_question_counts_as_incorrect():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    session.select_answer(0, 1)
    session.select_answer(2, 2)
    result = answer_all(session, [])

    assert result.score == 2
    assert result.passed is False
    assert result.answers[1]["selected_answer"] is None
    assert result.answers[1]["is_correct"] is False


def test_changing_an_answer_keeps_the_last_choice():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    session.select_answer(0, 2)
    session.select_answer(0, 1)
    assert session.answers[0] == 1


def test_invalid_indexes_are_rejected():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    with pytest.raises(InvalidAnswerError):
        session.select_answer(3, 0)
    with pytest.raises(InvalidAnswerError):
        session.select_answer(0, 3)
    assert session.answers == {}


def test_retry_clears_answers_and_keeps_attempt_number():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    answer_all(session, [0, 0, 0])

    session.retry()
    assert session.state == QuizState.IN_PROGRESS
    assert session.current_index == 0
    assert session.answers == {}
    assert session.result is None
    assert session.attempt_number == 2

    result = answer_all(session, [1, 0, 2])
    assert result.passed is True
    assert result.attempt_number == 2
    assert result.points == 50


def test_repeated_failures_clamp_to_overflow_reward():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    for _ in range(4):
        answer_all(session, [0, 0, 0])
        session.retry()

    assert session.attempt_number == 5
    assert session.current_reward == 25
    result = answer_all(session, [1, 0, 2])
    assert result.points == 25


def test_passed_session_is_final():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    answer_all(session, [1, 0, 2])

    with pytest.raises(QuizSessionError):
        session.retry()
    with pytest.raises(QuizSessionError):
        session.advance()
    with pytest.raises(QuizSessionError):
        session.select_answer(0, 0)


def test_retry_requires_failed_state():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    with pytest.raises(QuizSessionError):
        session.retry()


def test_failing_recorder_leaves_session_on_last_question():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    for index, option in enumerate([1, 0, 0]):
        session.select_answer(index, option)
    session.advance()
    session.advance()

    def broken_recorder(result):
        raise RuntimeError("database unavailable")

    with pytest.raises(RuntimeError):
        session.advance(recorder=broken_recorder)

    assert session.state == QuizState.IN_PROGRESS
    assert session.current_index == 2
    assert session.attempt_number == 1
    assert session.result is None

    # The same submission can be repeated once saving works again
    saved = []
    result = session.advance(recorder=saved.append)
    assert saved == [result]
    assert session.state == QuizState.FAILED
    assert session.attempt_number == 2


def test_failing_tracker_leaves_session_unchanged():
    class BrokenTracker(RecordingTracker):
        def on_quiz_passed(self, points):
            raise RuntimeError("progress unavailable")

    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    for index, option in enumerate([1, 0, 2]):
        session.select_answer(index, option)
    session.advance()
    session.advance()

    with pytest.raises(RuntimeError):
        session.advance(tracker=BrokenTracker())
    assert session.state == QuizState.IN_PROGRESS
    assert session.is_last_question


def test_session_can_resume_from_a_later_attempt():
    session = QuizSession(QUESTIONS, REWARDS, attempt_number=3)
    assert session.current_reward == 25
    with pytest.raises(ValueError):
        QuizSession(QUESTIONS, REWARDS, attempt_number=0)


def test_to_dict_reports_progress():
    session = QuizSession(QUESTIONS, REWARDS)
    session.start()
    session.select_answer(0, 1)
    session.advance()

    assert session.to_dict() == {
        "state": "in_progress",
        "current_index": 1,
        "total_questions": 3,
        "attempt_number": 1,
        "current_reward": 100,
        "answers": {"0": 1},
    }
