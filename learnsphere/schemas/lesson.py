# learnsphere/schemas/lesson.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

LESSON_TYPE_PATTERN = "^(video|document|image|quiz)$"


class Attachment(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    type: str = Field(default="link", pattern="^(file|link)$")


class LessonBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    lesson_type: str = Field(default="video", pattern=LESSON_TYPE_PATTERN)
    content_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=50)
    allow_download: bool = False
    attachments: List[Attachment] = Field(default_factory=list)
    position: Optional[int] = Field(
        None, ge=0, description="Defaults to the end of the course"
    )


class LessonCreate(LessonBase):
    pass


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    lesson_type: Optional[str] = Field(None, pattern=LESSON_TYPE_PATTERN)
    content_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=50)
    allow_download: Optional[bool] = None
    attachments: Optional[List[Attachment]] = None
    position: Optional[int] = Field(None, ge=0)


class LessonResponse(LessonBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    position: int
    has_quiz: bool = False
    created_at: datetime
    updated_at: datetime


class LessonListResponse(BaseModel):
    lessons: List[LessonResponse]
    total: int
