# learnsphere/services/dashboard.py
from typing import Callable, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.models.attempt import Attempt
from learnsphere.models.course import Course
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.user import User
from learnsphere.quiz.registry import quiz_session_registry
from learnsphere.schemas.dashboard import (
    AdminDashboard,
    Dashboard,
    InstructorDashboard,
    LearnerDashboard,
)
from learnsphere.services.enrollment import EnrollmentService
from learnsphere.services.user import UserService


class DashboardService:
    """Builds the home summary for whichever role is signed in"""

    def __init__(self, db: Session):
        self.db = db
        self.user_service = UserService(db)
        self._builders: Dict[Role, Callable[[SessionContext], Dashboard]] = {
            Role.LEARNER: self._learner,
            Role.INSTRUCTOR: self._instructor,
            Role.ADMIN: self._admin,
        }

    def build(self, ctx: SessionContext) -> Dashboard:
        return self._builders[ctx.role](ctx)

    def _learner(self, ctx: SessionContext) -> LearnerDashboard:
        enrollments = (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == ctx.user_id)
            .order_by(Enrollment.last_active.desc(), Enrollment.enrolled_at.desc())
            .all()
        )
        attempts = self.db.query(Attempt).filter(Attempt.user_id == ctx.user_id)

        return LearnerDashboard(
            points=ctx.user.points,
            rank=self.user_service.get_rank(ctx.user),
            enrolled_courses=len(enrollments),
            completed_courses=sum(1 for e in enrollments if e.completed),
            attempts=attempts.count(),
            passed_attempts=attempts.filter(Attempt.passed.is_(True)).count(),
            in_progress=[
                EnrollmentService.to_response(e) for e in enrollments if not e.completed
            ],
        )

    def _instructor(self, ctx: SessionContext) -> InstructorDashboard:
        return InstructorDashboard(
            stats=self.user_service.get_instructor_stats(ctx.user_id),
            recent_activity=self.user_service.get_recent_activity(ctx.user_id),
        )

    def _admin(self, ctx: SessionContext) -> AdminDashboard:
        role_counts = dict(
            self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        )
        return AdminDashboard(
            total_users=sum(role_counts.values()),
            learners=role_counts.get(Role.LEARNER.value, 0),
            instructors=role_counts.get(Role.INSTRUCTOR.value, 0),
            total_courses=self.db.query(func.count(Course.id)).scalar() or 0,
            published_courses=self.db.query(func.count(Course.id))
            .filter(Course.published.is_(True))
            .scalar()
            or 0,
            total_enrollments=self.db.query(func.count(Enrollment.id)).scalar() or 0,
            total_attempts=self.db.query(func.count(Attempt.id)).scalar() or 0,
            active_quiz_sessions=len(quiz_session_registry),
            top_learners=self.user_service.get_leaderboard(),
        )
