# learnsphere/quiz/session.py
"""
Quiz attempt state machine.

    not_started -> in_progress -> passed | failed
                        ^                    |
                        +------ retry -------+

A learner answers questions one at a time and advances; advancing past the
last question scores the attempt. Passing requires every answer to be
correct. A failed attempt bumps the attempt number and may be retried with
cleared answers; a passed attempt is final.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from learnsphere.quiz.rewards import DEFAULT_REWARDS, normalize_rewards, points_for_attempt

logger = logging.getLogger(__name__)


class QuizState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"


class QuizSessionError(Exception):
    """Raised for operations that are not valid in the current state."""


class InvalidAnswerError(QuizSessionError):
    """Raised when a question or option index is out of range."""


class ProgressTracker(Protocol):
    """Course-progress collaborator notified when an attempt is submitted."""

    def on_quiz_passed(self, points: int) -> None: ...

    def on_quiz_failed(self, failed_attempts: int) -> None: ...


@dataclass(frozen=True)
class AttemptResult:
    attempt_number: int
    score: int
    total: int
    passed: bool
    points: int
    answers: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return round(self.score / self.total * 100, 2) if self.total else 0.0


class QuizSession:
    def __init__(
        self,
        questions: Sequence[Mapping[str, Any]],
        rewards: Optional[Mapping[Any, Any]] = None,
        attempt_number: int = 1,
    ):
        if attempt_number < 1:
            raise ValueError("Attempt numbers start at 1")

        self.questions = list(questions)
        self.rewards = normalize_rewards(rewards or DEFAULT_REWARDS)
        self.attempt_number = attempt_number
        self.state = QuizState.NOT_STARTED
        self.current_index = 0
        self.result: Optional[AttemptResult] = None
        self._answers: Dict[int, int] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def is_last_question(self) -> bool:
        return self.current_index == self.total_questions - 1

    @property
    def answers(self) -> Dict[int, int]:
        return dict(self._answers)

    @property
    def is_submitted(self) -> bool:
        return self.state in (QuizState.PASSED, QuizState.FAILED)

    def points_for_attempt(self, attempt_number: int) -> int:
        return points_for_attempt(self.rewards, attempt_number)

    @property
    def current_reward(self) -> int:
        """Points the current attempt earns if it passes."""
        return self.points_for_attempt(self.attempt_number)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _require(self, *states: QuizState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise QuizSessionError(
                f"Operation not allowed in state '{self.state.value}' (expected {allowed})"
            )

    def start(self) -> None:
        self._require(QuizState.NOT_STARTED)
        if not self.questions:
            raise QuizSessionError("Quiz has no questions")
        self.state = QuizState.IN_PROGRESS
        self.current_index = 0
        self._answers = {}

    def select_answer(self, question_index: int, option_index: int) -> None:
        self._require(QuizState.IN_PROGRESS)
        if not 0 <= question_index < self.total_questions:
            raise InvalidAnswerError(f"Invalid question index: {question_index}")
        options = self.questions[question_index].get("options") or []
        if not 0 <= option_index < len(options):
            raise InvalidAnswerError(
                f"Invalid option index {option_index} for question {question_index}"
            )
        self._answers[question_index] = option_index

    def advance(
        self,
        tracker: Optional[ProgressTracker] = None,
        recorder: Optional[Callable[[AttemptResult], None]] = None,
    ) -> Optional[AttemptResult]:
        """
        Move to the next question, or submit on the last one.

        On submission the tracker is notified first, then the recorder
        persists the result. If either raises, the session stays on the last
        question in progress so the submission can be repeated.
        """
        self._require(QuizState.IN_PROGRESS)
        if not self.is_last_question:
            self.current_index += 1
            return None
        return self._submit(tracker, recorder)

    def retry(self) -> None:
        """Start the next attempt after a failure."""
        self._require(QuizState.FAILED)
        self.state = QuizState.IN_PROGRESS
        self.current_index = 0
        self._answers = {}
        self.result = None

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def score(self) -> AttemptResult:
        """Grade the current answers without changing state."""
        graded = []
        correct = 0
        for index, question in enumerate(self.questions):
            selected = self._answers.get(index)
            expected = question.get("correct_answer")
            is_correct = selected is not None and selected == expected
            if is_correct:
                correct += 1
            graded.append(
                {
                    "question_index": index,
                    "selected_answer": selected,
                    "correct_answer": expected,
                    "is_correct": is_correct,
                }
            )

        # All-or-nothing: a single wrong or missing answer fails the attempt
        passed = correct == self.total_questions
        return AttemptResult(
            attempt_number=self.attempt_number,
            score=correct,
            total=self.total_questions,
            passed=passed,
            points=self.current_reward if passed else 0,
            answers=graded,
        )

    def _submit(
        self,
        tracker: Optional[ProgressTracker],
        recorder: Optional[Callable[[AttemptResult], None]],
    ) -> AttemptResult:
        result = self.score()

        if tracker is not None:
            if result.passed:
                tracker.on_quiz_passed(result.points)
            else:
                tracker.on_quiz_failed(result.attempt_number)
        if recorder is not None:
            recorder(result)

        self.result = result
        if result.passed:
            self.state = QuizState.PASSED
        else:
            self.state = QuizState.FAILED
            self.attempt_number += 1

        logger.debug(
            f"Quiz submitted: attempt={result.attempt_number} "
            f"score={result.score}/{result.total} passed={result.passed}"
        )
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "current_index": self.current_index,
            "total_questions": self.total_questions,
            "attempt_number": self.attempt_number,
            "current_reward": self.current_reward,
            "answers": {str(k): v for k, v in self._answers.items()},
        }
