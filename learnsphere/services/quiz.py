# learnsphere/services/quiz.py
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.repository import Repository
from learnsphere.models.lesson import Lesson
from learnsphere.models.quiz import Quiz
from learnsphere.quiz import authoring
from learnsphere.quiz.rewards import normalize_rewards, to_storage
from learnsphere.schemas.quiz import (
    QuestionCreate,
    QuizCreate,
    QuizPublicResponse,
    QuizQuestionForAttempt,
    QuizUpdate,
)
from learnsphere.services.course import CourseService

logger = logging.getLogger(__name__)


class QuizService:
    def __init__(self, db: Session):
        self.db = db
        self.quizzes = Repository(db, Quiz)
        self.course_service = CourseService(db)

    # ==================== Lookup ====================

    def get_quiz(self, quiz_id: int) -> Quiz:
        quiz = self.quizzes.get(quiz_id)
        if not quiz:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found"
            )
        return quiz

    def get_playable_quiz(self, quiz_id: int) -> Quiz:
        """A quiz that can be attempted. Empty quizzes count as not found."""
        quiz = self.get_quiz(quiz_id)
        if not quiz.questions:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz not found or has no questions",
            )
        return quiz

    def get_visible_quiz(self, quiz_id: int, ctx: Optional[SessionContext]) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        self.course_service.get_visible_course(quiz.course_id, ctx)
        return quiz

    def get_managed_quiz(self, quiz_id: int, ctx: SessionContext) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        self.course_service.get_managed_course(quiz.course_id, ctx)
        return quiz

    def get_lesson_quiz(self, lesson_id: int) -> Quiz:
        quiz = self.quizzes.first(lesson_id=lesson_id)
        if not quiz:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found"
            )
        return quiz

    # ==================== CRUD ====================

    def create_quiz(self, quiz_in: QuizCreate, ctx: SessionContext) -> Quiz:
        lesson = self.db.get(Lesson, quiz_in.lesson_id)
        if not lesson:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found"
            )
        self.course_service.get_managed_course(lesson.course_id, ctx)

        if self.quizzes.first(lesson_id=lesson.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This lesson already has a quiz",
            )

        lesson.lesson_type = "quiz"
        quiz = self.quizzes.create(
            lesson_id=lesson.id,
            course_id=lesson.course_id,
            title=quiz_in.title,
            description=quiz_in.description,
            questions=[q.model_dump() for q in quiz_in.questions],
            rewards=to_storage(quiz_in.rewards),
        )
        logger.info(
            f"📝 Quiz {quiz.id} created for lesson {lesson.id} with {len(quiz.questions)} questions"
        )
        return quiz

    def update_quiz(self, quiz_id: int, quiz_in: QuizUpdate, ctx: SessionContext) -> Quiz:
        quiz = self.get_managed_quiz(quiz_id, ctx)
        data = quiz_in.model_dump(exclude_unset=True)

        if data.get("questions") is not None:
            data["questions"] = [q.model_dump() for q in quiz_in.questions]
        elif "questions" in data:
            del data["questions"]

        if data.get("rewards") is not None:
            data["rewards"] = to_storage(data["rewards"])
        elif "rewards" in data:
            del data["rewards"]

        return self.quizzes.update(quiz, **data)

    def delete_quiz(self, quiz_id: int, ctx: SessionContext) -> None:
        quiz = self.get_managed_quiz(quiz_id, ctx)
        self.quizzes.delete(quiz)
        logger.info(f"Quiz {quiz_id} deleted by user {ctx.user_id}")

    # ==================== Authoring ====================

    def _edit_questions(
        self,
        quiz_id: int,
        ctx: SessionContext,
        edit: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]],
    ) -> Quiz:
        quiz = self.get_managed_quiz(quiz_id, ctx)
        try:
            questions = edit(list(quiz.questions or []))
        except authoring.QuizAuthoringError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        # Reassign so the JSON column is flagged dirty
        return self.quizzes.update(quiz, questions=questions)

    def add_question(
        self, quiz_id: int, question_in: QuestionCreate, ctx: SessionContext
    ) -> Quiz:
        def edit(questions):
            question = authoring.new_question(**question_in.model_dump())
            return authoring.add_question(questions, question)

        return self._edit_questions(quiz_id, ctx, edit)

    def delete_question(
        self, quiz_id: int, question_index: int, ctx: SessionContext
    ) -> Quiz:
        return self._edit_questions(
            quiz_id, ctx, lambda qs: authoring.delete_question(qs, question_index)
        )

    def add_option(
        self,
        quiz_id: int,
        question_index: int,
        text: Optional[str],
        ctx: SessionContext,
    ) -> Quiz:
        return self._edit_questions(
            quiz_id, ctx, lambda qs: authoring.add_option(qs, question_index, text)
        )

    def remove_option(
        self,
        quiz_id: int,
        question_index: int,
        option_index: int,
        ctx: SessionContext,
    ) -> Quiz:
        return self._edit_questions(
            quiz_id,
            ctx,
            lambda qs: authoring.remove_option(qs, question_index, option_index),
        )

    def set_correct_option(
        self,
        quiz_id: int,
        question_index: int,
        option_index: int,
        ctx: SessionContext,
    ) -> Quiz:
        return self._edit_questions(
            quiz_id,
            ctx,
            lambda qs: authoring.set_correct_option(qs, question_index, option_index),
        )

    # ==================== Views ====================

    @staticmethod
    def to_public(quiz: Quiz) -> QuizPublicResponse:
        """Learner view: no correct answers, no explanations"""
        questions = [
            QuizQuestionForAttempt(
                question_text=q["question_text"], options=list(q["options"])
            )
            for q in quiz.questions or []
        ]
        return QuizPublicResponse(
            id=quiz.id,
            lesson_id=quiz.lesson_id,
            course_id=quiz.course_id,
            title=quiz.title,
            description=quiz.description,
            questions=questions,
            rewards=normalize_rewards(quiz.rewards),
            total_questions=len(questions),
        )
