# learnsphere/routers/quiz_session.py
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context
from learnsphere.schemas.quiz_session import (
    AnswerRequest,
    ProctorEventRequest,
    ProctorEventResponse,
    ProctorStatusResponse,
    QuizSessionResponse,
)
from learnsphere.services.quiz_session import QuizSessionService

router = APIRouter(
    prefix="/quiz-sessions",
    tags=["Quiz Sessions"],
    responses={404: {"description": "Session not found or expired"}},
)


@router.post(
    "/quiz/{quiz_id}",
    response_model=QuizSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_session(
    quiz_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """
    Start a proctored quiz session.

    Replaces any live session the caller already has on this quiz.
    """
    return QuizSessionService(db).start(quiz_id, ctx)


@router.get("/{session_id}", response_model=QuizSessionResponse)
def get_session(
    session_id: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    return QuizSessionService(db).get_state(session_id, ctx)


@router.post("/{session_id}/answer", response_model=QuizSessionResponse)
def select_answer(
    session_id: str,
    answer_in: AnswerRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Select an option. Selecting again overwrites the previous choice."""
    return QuizSessionService(db).answer(
        session_id, answer_in.question_index, answer_in.option_index, ctx
    )


@router.post("/{session_id}/next", response_model=QuizSessionResponse)
def next_question(
    session_id: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Go to the next question, or submit from the last one"""
    return QuizSessionService(db).advance(session_id, ctx)


@router.post("/{session_id}/retry", response_model=QuizSessionResponse)
def retry(
    session_id: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Start the next attempt after a failed one"""
    return QuizSessionService(db).retry(session_id, ctx)


@router.post("/{session_id}/events", response_model=ProctorEventResponse)
def record_event(
    session_id: str,
    event_in: ProctorEventRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Relay a browser event to the session's proctoring monitor"""
    return QuizSessionService(db).record_event(session_id, event_in, ctx)


@router.get("/{session_id}/proctoring", response_model=ProctorStatusResponse)
def get_proctoring(
    session_id: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    return QuizSessionService(db).get_proctoring(session_id, ctx)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_session(
    session_id: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Drop the session. Unsubmitted answers and counters are lost."""
    QuizSessionService(db).abandon(session_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
