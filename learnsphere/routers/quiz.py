# learnsphere/routers/quiz.py
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_optional_context, require_roles
from learnsphere.schemas.quiz import (
    CorrectOptionUpdate,
    OptionCreate,
    QuestionCreate,
    QuizCreate,
    QuizPublicResponse,
    QuizResponse,
    QuizUpdate,
)
from learnsphere.services.quiz import QuizService

router = APIRouter(
    prefix="/quizzes",
    tags=["Quizzes"],
    responses={404: {"description": "Not found"}},
)

instructor_or_admin = require_roles(Role.INSTRUCTOR, Role.ADMIN)


@router.post("/", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
def create_quiz(
    quiz_in: QuizCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    """Attach a quiz to a lesson. A lesson holds at most one quiz."""
    return QuizService(db).create_quiz(quiz_in, ctx)


@router.get("/lesson/{lesson_id}", response_model=QuizPublicResponse)
def get_lesson_quiz(
    lesson_id: int,
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    service = QuizService(db)
    quiz = service.get_lesson_quiz(lesson_id)
    service.course_service.get_visible_course(quiz.course_id, ctx)
    return QuizService.to_public(quiz)


@router.get("/{quiz_id}", response_model=QuizPublicResponse)
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    """Quiz as learners see it, without correct answers"""
    return QuizService.to_public(QuizService(db).get_visible_quiz(quiz_id, ctx))


@router.get("/{quiz_id}/full", response_model=QuizResponse)
def get_full_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    """Quiz with correct answers, for its instructor and admins"""
    return QuizService(db).get_managed_quiz(quiz_id, ctx)


@router.put("/{quiz_id}", response_model=QuizResponse)
def update_quiz(
    quiz_id: int,
    quiz_in: QuizUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    return QuizService(db).update_quiz(quiz_id, quiz_in, ctx)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    QuizService(db).delete_quiz(quiz_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== Question Authoring ====================


@router.post(
    "/{quiz_id}/questions",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_question(
    quiz_id: int,
    question_in: Optional[QuestionCreate] = None,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    """Append a question. Without a body a two-option placeholder is added."""
    return QuizService(db).add_question(quiz_id, question_in or QuestionCreate(), ctx)


@router.delete("/{quiz_id}/questions/{question_index}", response_model=QuizResponse)
def delete_question(
    quiz_id: int,
    question_index: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    return QuizService(db).delete_question(quiz_id, question_index, ctx)


@router.post(
    "/{quiz_id}/questions/{question_index}/options",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_option(
    quiz_id: int,
    question_index: int,
    option_in: Optional[OptionCreate] = None,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    text = option_in.text if option_in else None
    return QuizService(db).add_option(quiz_id, question_index, text, ctx)


@router.delete(
    "/{quiz_id}/questions/{question_index}/options/{option_index}",
    response_model=QuizResponse,
)
def remove_option(
    quiz_id: int,
    question_index: int,
    option_index: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    """Remove an option. The correct answer index follows the removal."""
    return QuizService(db).remove_option(quiz_id, question_index, option_index, ctx)


@router.put(
    "/{quiz_id}/questions/{question_index}/correct", response_model=QuizResponse
)
def set_correct_option(
    quiz_id: int,
    question_index: int,
    correct_in: CorrectOptionUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(instructor_or_admin),
):
    return QuizService(db).set_correct_option(
        quiz_id, question_index, correct_in.option_index, ctx
    )
