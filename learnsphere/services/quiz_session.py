# learnsphere/services/quiz_session.py
"""
Live quiz sessions driven one question at a time.

The QuizSession and its ProctorMonitor stay in the in-process registry
between requests; each request re-resolves the quiz, course and enrollment
from the database before touching them.
"""

import logging
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.models.attempt import Attempt
from learnsphere.quiz.proctoring import ProctorEvent, ProctorEventType
from learnsphere.quiz.registry import ActiveQuizSession, quiz_session_registry
from learnsphere.quiz.session import InvalidAnswerError, QuizSessionError
from learnsphere.schemas.attempt import AttemptResponse, ProctoringPayload
from learnsphere.schemas.quiz import QuizQuestionForAttempt
from learnsphere.schemas.quiz_session import (
    ProctorEventRequest,
    ProctorEventResponse,
    ProctorStatusResponse,
    QuizSessionResponse,
)
from learnsphere.services.quiz_attempt import QuizAttemptService

logger = logging.getLogger(__name__)


class QuizSessionService:
    def __init__(self, db: Session, registry=quiz_session_registry):
        self.db = db
        self.registry = registry
        self.attempt_service = QuizAttemptService(db)

    # ==================== Lifecycle ====================

    def start(self, quiz_id: int, ctx: SessionContext) -> QuizSessionResponse:
        attempt_ctx = self.attempt_service.resolve_context(quiz_id, ctx)
        session = self.attempt_service.new_session(attempt_ctx)
        session.start()

        # One live session per learner and quiz
        for stale in self.registry.sessions_for_user(ctx.user_id):
            if stale.quiz_id == attempt_ctx.quiz.id:
                self.registry.discard(stale.id)

        entry = self.registry.open(
            user_id=ctx.user_id,
            quiz_id=attempt_ctx.quiz.id,
            lesson_id=attempt_ctx.quiz.lesson_id,
            course_id=attempt_ctx.course.id,
            enrollment_id=attempt_ctx.enrollment.id if attempt_ctx.enrollment else None,
            session=session,
            quiz_title=attempt_ctx.quiz.title,
        )
        return self.to_response(entry)

    def get_entry(self, session_id: str, ctx: SessionContext) -> ActiveQuizSession:
        entry = self.registry.get(session_id)
        # Other users' sessions are indistinguishable from missing ones
        if entry is None or entry.user_id != ctx.user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz session not found or expired",
            )
        return entry

    def get_state(self, session_id: str, ctx: SessionContext) -> QuizSessionResponse:
        return self.to_response(self.get_entry(session_id, ctx))

    def answer(
        self,
        session_id: str,
        question_index: int,
        option_index: int,
        ctx: SessionContext,
    ) -> QuizSessionResponse:
        entry = self.get_entry(session_id, ctx)
        with _transition_errors():
            entry.session.select_answer(question_index, option_index)
        return self.to_response(entry)

    def advance(self, session_id: str, ctx: SessionContext) -> QuizSessionResponse:
        """
        Move to the next question, or submit on the last one.

        A failed save leaves the session on the last question so the learner
        can submit again.
        """
        entry = self.get_entry(session_id, ctx)
        attempt_ctx = self.attempt_service.resolve_context(entry.quiz_id, ctx)
        proctoring = ProctoringPayload(**entry.monitor.snapshot().to_payload())

        with _transition_errors():
            result, attempt = self.attempt_service.finish(
                entry.session,
                attempt_ctx,
                ctx.user_id,
                proctoring,
                started_at=entry.started_at,
            )

        if result is not None:
            entry.last_attempt_id = attempt.id
            if result.passed:
                entry.monitor.deactivate()
        return self.to_response(entry)

    def retry(self, session_id: str, ctx: SessionContext) -> QuizSessionResponse:
        entry = self.get_entry(session_id, ctx)
        with _transition_errors():
            entry.session.retry()
        # Each attempt carries only its own proctoring counters
        entry.monitor.reset_counters()
        entry.violations.clear()
        entry.monitor.enter_fullscreen()
        return self.to_response(entry)

    def abandon(self, session_id: str, ctx: SessionContext) -> None:
        self.get_entry(session_id, ctx)
        self.registry.discard(session_id)
        logger.info(f"Quiz session {session_id} abandoned by user {ctx.user_id}")

    # ==================== Proctoring ====================

    def record_event(
        self, session_id: str, event_in: ProctorEventRequest, ctx: SessionContext
    ) -> ProctorEventResponse:
        entry = self.get_entry(session_id, ctx)

        if event_in.type == "webcam":
            entry.monitor.record_webcam_permission(event_in.granted)
            return ProctorEventResponse(
                type=event_in.type,
                default_prevented=False,
                proctoring=self.proctor_status(entry),
            )

        event = entry.hub.dispatch(
            ProctorEvent(
                type=ProctorEventType(event_in.type),
                hidden=event_in.hidden,
                fullscreen=event_in.fullscreen,
            )
        )
        return ProctorEventResponse(
            type=event_in.type,
            default_prevented=event.default_prevented,
            proctoring=self.proctor_status(entry),
        )

    def get_proctoring(self, session_id: str, ctx: SessionContext) -> ProctorStatusResponse:
        return self.proctor_status(self.get_entry(session_id, ctx))

    @staticmethod
    def proctor_status(entry: ActiveQuizSession) -> ProctorStatusResponse:
        monitor = entry.monitor
        return ProctorStatusResponse(
            counters=ProctoringPayload(**monitor.snapshot().to_payload()),
            is_active=monitor.is_active,
            is_fullscreen=monitor.is_fullscreen,
            needs_fullscreen_prompt=monitor.needs_fullscreen_prompt,
            fullscreen_requests=entry.fullscreen_requests,
            warning=monitor.active_warning,
            violations=list(entry.violations),
        )

    # ==================== Serialization ====================

    def to_response(self, entry: ActiveQuizSession) -> QuizSessionResponse:
        session = entry.session
        state = session.to_dict()

        current_question = None
        if not session.is_submitted:
            question = session.questions[session.current_index]
            current_question = QuizQuestionForAttempt(
                question_text=question["question_text"],
                options=list(question["options"]),
            )

        last_attempt = None
        if entry.last_attempt_id is not None:
            attempt = self.db.get(Attempt, entry.last_attempt_id)
            if attempt is not None:
                last_attempt = AttemptResponse.model_validate(attempt)

        return QuizSessionResponse(
            id=entry.id,
            quiz_id=entry.quiz_id,
            lesson_id=entry.lesson_id,
            course_id=entry.course_id,
            title=entry.quiz_title,
            state=state["state"],
            current_index=state["current_index"],
            total_questions=state["total_questions"],
            attempt_number=state["attempt_number"],
            current_reward=state["current_reward"],
            answers=state["answers"],
            current_question=current_question,
            last_attempt=last_attempt,
            proctoring=self.proctor_status(entry),
            started_at=entry.started_at,
            expires_at=entry.expires_at,
        )


@contextmanager
def _transition_errors():
    """Map quiz state errors onto HTTP errors"""
    try:
        yield
    except InvalidAnswerError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuizSessionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
