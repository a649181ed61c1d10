# learnsphere/schemas/course.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

LEVEL_PATTERN = "^(Beginner|Intermediate|Advanced)$"
ACCESS_RULE_PATTERN = "^(open|invitation|payment)$"
VISIBILITY_PATTERN = "^(everyone|signed-in)$"


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=50)
    level: str = Field(default="Beginner", pattern=LEVEL_PATTERN)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = Field(None, max_length=100)
    website_url: Optional[str] = Field(None, max_length=500)
    published: bool = False
    visibility: str = Field(default="everyone", pattern=VISIBILITY_PATTERN)
    access_rule: str = Field(default="open", pattern=ACCESS_RULE_PATTERN)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    allow_reviews: bool = True


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=50)
    level: Optional[str] = Field(None, pattern=LEVEL_PATTERN)
    tags: Optional[List[str]] = None
    category: Optional[str] = Field(None, max_length=100)
    website_url: Optional[str] = Field(None, max_length=500)
    published: Optional[bool] = None
    visibility: Optional[str] = Field(None, pattern=VISIBILITY_PATTERN)
    access_rule: Optional[str] = Field(None, pattern=ACCESS_RULE_PATTERN)
    price: Optional[Decimal] = Field(None, ge=0)
    allow_reviews: Optional[bool] = None


class CourseResponse(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    instructor_id: int
    instructor_name: Optional[str] = None
    is_paid: bool
    views_count: int
    reviews_count: int
    rating: Optional[float] = None
    lessons_count: int = 0
    students_count: int = 0
    created_at: datetime
    updated_at: datetime


class CourseListResponse(BaseModel):
    courses: List[CourseResponse]
    total: int
    page: int
    size: int
    total_pages: int
