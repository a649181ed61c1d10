from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from learnsphere.schemas.auth import UserResponse


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int = 0
    id: int
    name: str
    points: int


class LeaderboardResponse(BaseModel):
    users: List[LeaderboardEntry]


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
    page: int
    size: int
    total_pages: int


class InstructorStats(BaseModel):
    """Aggregates over an instructor's own courses"""

    total_courses: int
    published_courses: int
    students: int
    total_enrollments: int
    completions: int
    total_attempts: int
    passed_attempts: int
    pass_rate: float = Field(0.0, description="Passed attempts as a percentage")
    average_rating: Optional[float] = None


class ActivityItem(BaseModel):
    type: str  # enrollment, review
    message: str
    date: datetime


class BackofficeUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str


class UserStatusUpdate(BaseModel):
    is_active: bool
