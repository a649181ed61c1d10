from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from learnsphere.schemas.enrollment import EnrollmentResponse
from learnsphere.schemas.user import ActivityItem, InstructorStats, LeaderboardEntry


class LearnerDashboard(BaseModel):
    role: Literal["learner"] = "learner"
    points: int
    rank: Optional[int] = None
    enrolled_courses: int
    completed_courses: int
    attempts: int
    passed_attempts: int
    in_progress: List[EnrollmentResponse]


class InstructorDashboard(BaseModel):
    role: Literal["instructor"] = "instructor"
    stats: InstructorStats
    recent_activity: List[ActivityItem]


class AdminDashboard(BaseModel):
    role: Literal["admin"] = "admin"
    total_users: int
    learners: int
    instructors: int
    total_courses: int
    published_courses: int
    total_enrollments: int
    total_attempts: int
    active_quiz_sessions: int
    top_learners: List[LeaderboardEntry]


Dashboard = Annotated[
    Union[LearnerDashboard, InstructorDashboard, AdminDashboard],
    Field(discriminator="role"),
]
