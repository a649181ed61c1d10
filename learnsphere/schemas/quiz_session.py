# learnsphere/schemas/quiz_session.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from learnsphere.schemas.attempt import AttemptResponse, ProctoringPayload
from learnsphere.schemas.quiz import QuizQuestionForAttempt


class AnswerRequest(BaseModel):
    question_index: int = Field(..., ge=0)
    option_index: int = Field(..., ge=0)


class ProctorEventRequest(BaseModel):
    """
    A browser event relayed by the quiz page.

    - ``visibilitychange``: ``hidden`` is the new document visibility
    - ``fullscreenchange``: ``fullscreen`` is the new fullscreen state
    - ``copy`` / ``paste`` / ``cut``: always blocked
    - ``webcam``: ``granted`` is the permission prompt outcome
    """

    type: str = Field(
        ..., pattern="^(visibilitychange|fullscreenchange|copy|paste|cut|webcam)$"
    )
    hidden: bool = False
    fullscreen: bool = False
    granted: bool = False


class ProctorStatusResponse(BaseModel):
    counters: ProctoringPayload
    is_active: bool
    is_fullscreen: bool
    needs_fullscreen_prompt: bool
    fullscreen_requests: int
    warning: Optional[str] = None
    violations: List[Dict] = Field(default_factory=list)


class ProctorEventResponse(BaseModel):
    type: str
    default_prevented: bool
    proctoring: ProctorStatusResponse


class QuizSessionResponse(BaseModel):
    id: str
    quiz_id: int
    lesson_id: int
    course_id: int
    title: str
    state: str
    current_index: int
    total_questions: int
    attempt_number: int
    current_reward: int
    answers: Dict[str, int]
    current_question: Optional[QuizQuestionForAttempt] = None
    last_attempt: Optional[AttemptResponse] = None
    proctoring: ProctorStatusResponse
    started_at: datetime
    expires_at: datetime
