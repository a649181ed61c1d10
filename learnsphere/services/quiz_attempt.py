# learnsphere/services/quiz_attempt.py
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.decorator import DBException
from learnsphere.core.repository import Repository
from learnsphere.models.attempt import Attempt
from learnsphere.models.course import Course
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.quiz import Quiz
from learnsphere.quiz.session import (
    AttemptResult,
    InvalidAnswerError,
    QuizSession,
    QuizSessionError,
)
from learnsphere.schemas.attempt import AttemptSubmit, ProctoringPayload
from learnsphere.services.course import CourseService
from learnsphere.services.progress import EnrollmentProgressTracker, failed_attempts
from learnsphere.services.quiz import QuizService
from learnsphere.utils.pagination import paginate

logger = logging.getLogger(__name__)


@dataclass
class AttemptContext:
    """Everything a submission needs besides the answers"""

    quiz: Quiz
    course: Course
    enrollment: Optional[Enrollment]

    @property
    def is_preview(self) -> bool:
        # Instructors and admins trying a quiz out have no enrollment to track
        return self.enrollment is None


class QuizAttemptService:
    def __init__(self, db: Session):
        self.db = db
        self.attempts = Repository(db, Attempt)
        self.enrollments = Repository(db, Enrollment)
        self.quiz_service = QuizService(db)
        self.course_service = CourseService(db)

    # ==================== Submission plumbing ====================

    def resolve_context(self, quiz_id: int, ctx: SessionContext) -> AttemptContext:
        """
        Load a playable quiz and check the caller may attempt it.

        Learners must be enrolled in the course. The course's instructor and
        admins may attempt it as a preview.
        """
        quiz = self.quiz_service.get_playable_quiz(quiz_id)
        course = self.course_service.get_visible_course(quiz.course_id, ctx)

        enrollment = self.enrollments.first(user_id=ctx.user_id, course_id=course.id)
        if enrollment is None and not ctx.can_manage(course.instructor_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Enroll in this course to attempt its quizzes",
            )

        return AttemptContext(quiz=quiz, course=course, enrollment=enrollment)

    def new_session(self, attempt_ctx: AttemptContext) -> QuizSession:
        attempt_number = failed_attempts(attempt_ctx.enrollment, attempt_ctx.quiz.lesson_id) + 1
        return QuizSession(
            attempt_ctx.quiz.questions,
            rewards=attempt_ctx.quiz.rewards,
            attempt_number=attempt_number,
        )

    def tracker_for(
        self, attempt_ctx: AttemptContext
    ) -> Optional[EnrollmentProgressTracker]:
        if attempt_ctx.is_preview:
            return None
        return EnrollmentProgressTracker(
            self.db, attempt_ctx.enrollment, attempt_ctx.quiz.lesson_id
        )

    def recorder_for(
        self,
        attempt_ctx: AttemptContext,
        user_id: int,
        tracker: Optional[EnrollmentProgressTracker],
        proctoring: ProctoringPayload,
        started_at: Optional[datetime],
        saved: List[Attempt],
    ) -> Callable[[AttemptResult], None]:
        """
        Build the recorder hook that persists a scored attempt.

        The attempt row and any progress staged by ``tracker`` are committed
        together. On failure everything is rolled back and a 503 is raised.
        """

        def record(result: AttemptResult) -> None:
            attempt = Attempt(
                user_id=user_id,
                course_id=attempt_ctx.quiz.course_id,
                quiz_id=attempt_ctx.quiz.id,
                lesson_id=attempt_ctx.quiz.lesson_id,
                attempt_number=result.attempt_number,
                score=result.score,
                total=result.total,
                passed=result.passed,
                points_awarded=tracker.points_awarded if tracker else 0,
                answers=result.answers,
                proctoring=proctoring.model_dump(),
                started_at=started_at,
            )
            try:
                self.db.add(attempt)
                self.db.commit()
                self.db.refresh(attempt)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    f"❌ Failed to save attempt for user {user_id} on quiz {attempt_ctx.quiz.id}: {e}"
                )
                raise DBException(
                    "Could not save your quiz attempt. Please submit again.", 503
                )
            saved.append(attempt)

        return record

    def finish(
        self,
        session: QuizSession,
        attempt_ctx: AttemptContext,
        user_id: int,
        proctoring: ProctoringPayload,
        started_at: Optional[datetime] = None,
    ) -> Tuple[Optional[AttemptResult], Optional[Attempt]]:
        """
        Advance ``session`` once, submitting when it is on the last question.

        Returns the result and the saved attempt on submission, else
        ``(None, None)``.
        """
        tracker = self.tracker_for(attempt_ctx)
        saved: List[Attempt] = []
        recorder = self.recorder_for(
            attempt_ctx, user_id, tracker, proctoring, started_at, saved
        )
        try:
            result = session.advance(tracker=tracker, recorder=recorder)
        except DBException:
            self.db.rollback()
            raise

        if result is None:
            return None, None

        logger.info(
            f"Quiz {attempt_ctx.quiz.id} attempt #{result.attempt_number} by user {user_id}: "
            f"{result.score}/{result.total} {'passed ✅' if result.passed else 'failed ❌'}"
        )
        return result, saved[0]

    # ==================== Stateless submit ====================

    def submit(
        self, quiz_id: int, submit_in: AttemptSubmit, ctx: SessionContext
    ) -> Attempt:
        """Grade a complete answer list in one request and persist the attempt"""
        attempt_ctx = self.resolve_context(quiz_id, ctx)
        session = self.new_session(attempt_ctx)

        if len(submit_in.answers) > session.total_questions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Quiz has only {session.total_questions} questions",
            )

        try:
            session.start()
            for question_index, option_index in enumerate(submit_in.answers):
                if option_index is not None:
                    session.select_answer(question_index, option_index)
        except InvalidAnswerError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except QuizSessionError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        attempt = None
        while attempt is None:
            _, attempt = self.finish(
                session,
                attempt_ctx,
                ctx.user_id,
                submit_in.proctoring,
                started_at=submit_in.started_at,
            )
        return attempt

    # ==================== Listings ====================

    def get_attempt(self, attempt_id: int, ctx: SessionContext) -> Attempt:
        attempt = self.attempts.get(attempt_id)
        if not attempt:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Attempt not found"
            )
        if attempt.user_id != ctx.user_id:
            course = self.course_service.get_course(attempt.course_id)
            if not ctx.can_manage(course.instructor_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Attempt not found"
                )
        return attempt

    def get_my_attempts(
        self,
        ctx: SessionContext,
        quiz_id: Optional[int] = None,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Attempt], dict]:
        query = self.db.query(Attempt).filter(Attempt.user_id == ctx.user_id)
        if quiz_id is not None:
            query = query.filter(Attempt.quiz_id == quiz_id)
        return paginate(self._ordered(query), page, size)

    def get_quiz_attempts(
        self, quiz_id: int, ctx: SessionContext, page: int = 1, size: int = 20
    ) -> Tuple[List[Attempt], dict]:
        self.quiz_service.get_managed_quiz(quiz_id, ctx)
        query = self.db.query(Attempt).filter(Attempt.quiz_id == quiz_id)
        return paginate(self._ordered(query), page, size)

    def get_course_attempts(
        self, course_id: int, ctx: SessionContext, page: int = 1, size: int = 20
    ) -> Tuple[List[Attempt], dict]:
        self.course_service.get_managed_course(course_id, ctx)
        query = self.db.query(Attempt).filter(Attempt.course_id == course_id)
        return paginate(self._ordered(query), page, size)

    def get_instructor_attempts(
        self, ctx: SessionContext, page: int = 1, size: int = 20
    ) -> Tuple[List[Attempt], dict]:
        query = (
            self.db.query(Attempt)
            .join(Course, Course.id == Attempt.course_id)
            .filter(Course.instructor_id == ctx.user_id)
        )
        return paginate(self._ordered(query), page, size)

    def get_all_attempts(
        self, page: int = 1, size: int = 20
    ) -> Tuple[List[Attempt], dict]:
        return paginate(self._ordered(self.db.query(Attempt)), page, size)

    @staticmethod
    def _ordered(query):
        return query.order_by(Attempt.created_at.desc(), Attempt.id.desc())
