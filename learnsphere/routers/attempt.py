# learnsphere/routers/attempt.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context, require_roles
from learnsphere.schemas.attempt import (
    AttemptListResponse,
    AttemptResponse,
    AttemptSubmit,
)
from learnsphere.services.quiz_attempt import QuizAttemptService

router = APIRouter(
    prefix="/attempts",
    tags=["Attempts"],
    responses={404: {"description": "Not found"}},
)


@router.post(
    "/quiz/{quiz_id}",
    response_model=AttemptResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_attempt(
    quiz_id: int,
    submit_in: AttemptSubmit,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """
    Submit a whole quiz attempt at once.

    Passing needs every answer correct. A pass completes the lesson and
    awards the reward for this attempt number; a fail counts towards the
    next attempt number.
    """
    return QuizAttemptService(db).submit(quiz_id, submit_in, ctx)


@router.get("/me", response_model=AttemptListResponse)
def list_my_attempts(
    quiz_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    attempts, pagination = QuizAttemptService(db).get_my_attempts(ctx, quiz_id, page, size)
    return {"attempts": attempts, **pagination}


@router.get("/quiz/{quiz_id}", response_model=AttemptListResponse)
def list_quiz_attempts(
    quiz_id: int,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    attempts, pagination = QuizAttemptService(db).get_quiz_attempts(
        quiz_id, ctx, page, size
    )
    return {"attempts": attempts, **pagination}


@router.get("/course/{course_id}", response_model=AttemptListResponse)
def list_course_attempts(
    course_id: int,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    attempts, pagination = QuizAttemptService(db).get_course_attempts(
        course_id, ctx, page, size
    )
    return {"attempts": attempts, **pagination}


@router.get("/instructor", response_model=AttemptListResponse)
def list_instructor_attempts(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR)),
):
    """Attempts on every course the caller teaches"""
    attempts, pagination = QuizAttemptService(db).get_instructor_attempts(
        ctx, page, size
    )
    return {"attempts": attempts, **pagination}


@router.get("/", response_model=AttemptListResponse)
def list_all_attempts(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.ADMIN)),
):
    attempts, pagination = QuizAttemptService(db).get_all_attempts(page, size)
    return {"attempts": attempts, **pagination}


@router.get("/{attempt_id}", response_model=AttemptResponse)
def get_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    return QuizAttemptService(db).get_attempt(attempt_id, ctx)
