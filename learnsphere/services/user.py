# learnsphere/services/user.py
import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from learnsphere.core.config import settings
from learnsphere.core.context import Role, SessionContext
from learnsphere.core.repository import Repository
from learnsphere.models.attempt import Attempt
from learnsphere.models.course import Course
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.review import Review
from learnsphere.models.user import User
from learnsphere.schemas.user import (
    ActivityItem,
    InstructorStats,
    LeaderboardEntry,
    UserProfileUpdate,
)
from learnsphere.utils.file_upload import file_upload_service
from learnsphere.utils.pagination import paginate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.users = Repository(db, User)

    def get_user(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return user

    def update_profile(self, ctx: SessionContext, profile_in: UserProfileUpdate) -> User:
        return self.users.update(ctx.user, **profile_in.model_dump(exclude_unset=True))

    async def upload_profile_picture(
        self, ctx: SessionContext, image_file: UploadFile
    ) -> User:
        _, relative_path = await file_upload_service.save(
            image_file, "image", folder="users"
        )
        old_picture = ctx.user.profile_picture
        user = self.users.update(
            ctx.user, profile_picture=file_upload_service.public_url(relative_path)
        )
        file_upload_service.delete_public_url(old_picture)
        return user

    # ==================== Gamification ====================

    def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Top learners by points, ties broken by who signed up first"""
        limit = limit or settings.leaderboard_size
        learners = (
            self.db.query(User)
            .filter(User.role == Role.LEARNER.value, User.is_active.is_(True))
            .order_by(User.points.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [
            LeaderboardEntry(rank=index, id=user.id, name=user.name, points=user.points)
            for index, user in enumerate(learners, start=1)
        ]

    def get_rank(self, user: User) -> Optional[int]:
        if user.role != Role.LEARNER.value:
            return None
        ahead = (
            self.db.query(func.count(User.id))
            .filter(
                User.role == Role.LEARNER.value,
                User.is_active.is_(True),
                (User.points > user.points)
                | ((User.points == user.points) & (User.id < user.id)),
            )
            .scalar()
        )
        return ahead + 1

    # ==================== Instructor ====================

    def get_instructor_stats(self, instructor_id: Optional[int] = None) -> InstructorStats:
        """
        Aggregates over one instructor's courses, or over the whole catalog
        when ``instructor_id`` is None.
        """
        course_filter = []
        if instructor_id is not None:
            course_filter.append(Course.instructor_id == instructor_id)

        total_courses = self.db.query(func.count(Course.id)).filter(*course_filter).scalar()
        published_courses = (
            self.db.query(func.count(Course.id))
            .filter(Course.published.is_(True), *course_filter)
            .scalar()
        )

        enrollments = self.db.query(Enrollment).join(
            Course, Course.id == Enrollment.course_id
        ).filter(*course_filter)
        total_enrollments = enrollments.count()
        completions = enrollments.filter(Enrollment.completed.is_(True)).count()
        students = (
            enrollments.with_entities(func.count(func.distinct(Enrollment.user_id))).scalar()
        )

        attempts = self.db.query(Attempt).join(
            Course, Course.id == Attempt.course_id
        ).filter(*course_filter)
        total_attempts = attempts.count()
        passed_attempts = attempts.filter(Attempt.passed.is_(True)).count()

        average_rating = (
            self.db.query(func.avg(Course.rating))
            .filter(Course.rating.isnot(None), *course_filter)
            .scalar()
        )

        return InstructorStats(
            total_courses=total_courses or 0,
            published_courses=published_courses or 0,
            students=students or 0,
            total_enrollments=total_enrollments,
            completions=completions,
            total_attempts=total_attempts,
            passed_attempts=passed_attempts,
            pass_rate=round(passed_attempts / total_attempts * 100, 2)
            if total_attempts
            else 0.0,
            average_rating=round(float(average_rating), 2)
            if average_rating is not None
            else None,
        )

    def get_recent_activity(
        self, instructor_id: Optional[int] = None, limit: int = 10
    ) -> List[ActivityItem]:
        """Latest enrollments and reviews on an instructor's courses"""
        enrollments = self.db.query(Enrollment).join(
            Course, Course.id == Enrollment.course_id
        )
        reviews = self.db.query(Review).join(Course, Course.id == Review.course_id)
        if instructor_id is not None:
            enrollments = enrollments.filter(Course.instructor_id == instructor_id)
            reviews = reviews.filter(Course.instructor_id == instructor_id)

        activity = [
            ActivityItem(
                type="enrollment",
                message=f'New student {e.user.name} enrolled in "{e.course.title}"',
                date=e.enrolled_at,
            )
            for e in enrollments.order_by(Enrollment.enrolled_at.desc()).limit(limit)
        ]
        activity += [
            ActivityItem(
                type="review",
                message=f'{r.user_name} left a {r.rating}-star review on "{r.course.title}"',
                date=r.created_at,
            )
            for r in reviews.order_by(Review.created_at.desc()).limit(limit)
        ]

        activity.sort(key=lambda item: item.date, reverse=True)
        return activity[:limit]

    # ==================== Admin ====================

    def get_users(
        self,
        page: int = 1,
        size: int = 20,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], dict]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if search:
            search_pattern = f"%{search.lower()}%"
            query = query.filter(
                func.lower(User.name).like(search_pattern)
                | func.lower(User.email).like(search_pattern)
            )
        return paginate(query.order_by(User.created_at.desc(), User.id.desc()), page, size)

    def get_backoffice_users(self) -> List[User]:
        """Instructors and admins"""
        return (
            self.db.query(User)
            .filter(User.role.in_([Role.INSTRUCTOR.value, Role.ADMIN.value]))
            .order_by(User.name)
            .all()
        )

    def set_active(self, user_id: int, is_active: bool, ctx: SessionContext) -> User:
        user = self.get_user(user_id)
        if user.id == ctx.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot change your own account status",
            )
        user = self.users.update(user, is_active=is_active)
        logger.info(
            f"User {user_id} {'activated' if is_active else 'deactivated'} by admin {ctx.user_id}"
        )
        return user
