# learnsphere/schemas/attempt.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProctoringPayload(BaseModel):
    """Client-observed proctoring counters sent with a submission"""

    tab_switches: int = Field(default=0, ge=0)
    full_screen_exits: int = Field(default=0, ge=0)
    webcam_enabled: bool = False


class AttemptSubmit(BaseModel):
    """
    Submit a whole attempt at once.

    ``answers[i]`` is the selected option for question ``i``; ``None`` leaves
    the question unanswered, which grades as incorrect.
    """

    answers: List[Optional[int]] = Field(default_factory=list)
    proctoring: ProctoringPayload = Field(default_factory=ProctoringPayload)
    started_at: Optional[datetime] = None


class GradedAnswer(BaseModel):
    question_index: int
    selected_answer: Optional[int] = None
    correct_answer: Optional[int] = None
    is_correct: bool


class AttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    quiz_id: int
    lesson_id: int
    attempt_number: int
    score: int
    total: int
    passed: bool
    points_awarded: int
    answers: List[GradedAnswer]
    proctoring: Optional[ProctoringPayload] = None
    started_at: Optional[datetime] = None
    created_at: datetime


class AttemptListResponse(BaseModel):
    attempts: List[AttemptResponse]
    total: int
    page: int
    size: int
    total_pages: int
