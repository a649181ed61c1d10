# learnsphere/schemas/quiz.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from learnsphere.quiz.authoring import MIN_OPTIONS
from learnsphere.quiz.rewards import DEFAULT_REWARDS, normalize_rewards


class QuizQuestion(BaseModel):
    """A single quiz question - INSTRUCTOR VIEW (includes the correct answer)"""

    question_text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=MIN_OPTIONS)
    correct_answer: int = Field(
        ..., ge=0, description="Index of the correct answer in options array"
    )
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def check_correct_answer(self):
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} is out of range for {len(self.options)} options"
            )
        return self


class QuizQuestionForAttempt(BaseModel):
    """Quiz question during an attempt - WITHOUT the correct answer"""

    question_text: str
    options: List[str]


class QuizCreate(BaseModel):
    lesson_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    questions: List[QuizQuestion] = Field(default_factory=list)
    rewards: Dict[int, int] = Field(
        default_factory=lambda: dict(DEFAULT_REWARDS),
        description="Attempt number -> points. The highest key is the overflow tier.",
    )

    @field_validator("rewards")
    @classmethod
    def validate_rewards(cls, value):
        if value is None:
            return value
        return normalize_rewards(value)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    questions: Optional[List[QuizQuestion]] = None
    rewards: Optional[Dict[int, int]] = None

    @field_validator("rewards")
    @classmethod
    def validate_rewards(cls, value):
        if value is None:
            return value
        return normalize_rewards(value)


class QuizResponse(BaseModel):
    """Full quiz - instructors and admins only"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    lesson_id: int
    course_id: int
    title: str
    description: Optional[str] = None
    questions: List[QuizQuestion]
    rewards: Dict[int, int]
    created_at: datetime
    updated_at: datetime


class QuizPublicResponse(BaseModel):
    """Quiz as learners see it - questions WITHOUT answers"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    lesson_id: int
    course_id: int
    title: str
    description: Optional[str] = None
    questions: List[QuizQuestionForAttempt]
    rewards: Dict[int, int]
    total_questions: int


class QuestionCreate(BaseModel):
    question_text: str = Field(default="New Question", min_length=1)
    options: List[str] = Field(
        default_factory=lambda: ["Option 1", "Option 2"], min_length=MIN_OPTIONS
    )
    correct_answer: int = Field(default=0, ge=0)
    explanation: Optional[str] = None


class OptionCreate(BaseModel):
    text: Optional[str] = Field(None, min_length=1)


class CorrectOptionUpdate(BaseModel):
    option_index: int = Field(..., ge=0)
