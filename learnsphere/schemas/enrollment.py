# learnsphere/schemas/enrollment.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from learnsphere.schemas.auth import UserResponse


class EnrollmentCreate(BaseModel):
    course_id: int


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    course_title: Optional[str] = None
    user_name: Optional[str] = None
    progress: Dict[str, Any] = Field(default_factory=dict)
    progress_percent: int
    completed: bool
    time_spent: int
    enrolled_at: datetime
    started_at: Optional[datetime] = None
    last_active: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class EnrollmentProgressResponse(BaseModel):
    enrollment: EnrollmentResponse
    points_awarded: int
    user_points: int


class EnrollmentListResponse(BaseModel):
    enrollments: List[EnrollmentResponse]
    total: int
    page: int
    size: int
    total_pages: int


class AttendeeCreate(BaseModel):
    """Enroll someone by email, creating a learner account if needed"""

    email: EmailStr
    name: Optional[str] = Field(None, min_length=2, max_length=100)


class AttendeeResponse(BaseModel):
    user: UserResponse
    enrollment: EnrollmentResponse
    created: bool = Field(False, description="A new learner account was created")
    temporary_password: Optional[str] = Field(
        None, description="Only returned when the account was just created"
    )


class ContactAttendeesRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


class ContactAttendeesResponse(BaseModel):
    success: bool
    count: int
