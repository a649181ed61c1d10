# learnsphere/services/enrollment.py
import logging
import secrets
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from learnsphere.core.config import settings
from learnsphere.core.context import Role, SessionContext
from learnsphere.core.decorator import DBException
from learnsphere.core.hasher import PasswordHelper
from learnsphere.core.repository import Repository
from learnsphere.models.course import Course
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.lesson import Lesson
from learnsphere.models.user import User
from learnsphere.schemas.enrollment import (
    AttendeeCreate,
    ContactAttendeesRequest,
    EnrollmentResponse,
)
from learnsphere.services.course import CourseService
from learnsphere.services.progress import EnrollmentProgressTracker
from learnsphere.utils.pagination import paginate

logger = logging.getLogger(__name__)


class EnrollmentService:
    def __init__(self, db: Session):
        self.db = db
        self.enrollments = Repository(db, Enrollment)
        self.course_service = CourseService(db)

    def enroll(self, course_id: int, ctx: SessionContext) -> Enrollment:
        """
        Enroll the caller in a published course.
        - Each user can enroll in a course once
        - Enrolling awards ENROLLMENT_POINTS
        - Invitation-only courses are joined through their instructor
        """
        course = self.course_service.get_course(course_id)
        if not course.published:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
            )
        if course.access_rule == "invitation":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This course is by invitation only",
            )

        if self.enrollments.first(user_id=ctx.user_id, course_id=course_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Already enrolled in this course",
            )

        try:
            enrollment = self.enrollments.create(
                commit=False,
                user_id=ctx.user_id,
                course_id=course_id,
                progress={},
                enrolled_at=datetime.utcnow(),
            )
            Repository(self.db, User).atomic_update(
                ctx.user_id,
                {"points": User.points + settings.enrollment_points},
                commit=False,
            )
            self.db.commit()
        except DBException as e:
            self.db.rollback()
            if e.status_code == status.HTTP_409_CONFLICT:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Already enrolled in this course",
                )
            raise

        self.db.refresh(enrollment)
        logger.info(
            f"✅ User {ctx.user_id} enrolled in course {course_id} (+{settings.enrollment_points} points)"
        )
        return enrollment

    def get_enrollment(self, course_id: int, ctx: SessionContext) -> Enrollment:
        enrollment = self.enrollments.first(user_id=ctx.user_id, course_id=course_id)
        if not enrollment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Not enrolled in this course",
            )
        return enrollment

    def complete_lesson(
        self,
        course_id: int,
        lesson_id: int,
        ctx: SessionContext,
    ) -> Tuple[Enrollment, int]:
        """
        Mark a non-quiz lesson completed.
        Quiz lessons are completed by passing their quiz.
        """
        enrollment = self.get_enrollment(course_id, ctx)

        lesson = (
            self.db.query(Lesson)
            .filter(Lesson.id == lesson_id, Lesson.course_id == course_id)
            .first()
        )
        if not lesson:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found"
            )
        if lesson.quiz is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quiz lessons are completed by passing the quiz",
            )

        tracker = EnrollmentProgressTracker(self.db, enrollment, lesson_id)
        try:
            tracker.complete_lesson(settings.lesson_points)
            self.db.commit()
        except DBException:
            self.db.rollback()
            raise

        self.db.refresh(enrollment)
        return enrollment, tracker.points_awarded

    # ==================== Attendees ====================

    def add_attendee(
        self, course_id: int, attendee_in: AttendeeCreate, ctx: SessionContext
    ) -> Tuple[Enrollment, User, Optional[str]]:
        """
        Enroll a learner on the instructor's behalf.
        - Unknown emails get a new learner account with a temporary password
        - The temporary password is only returned when the account was created
        - No enrollment points are awarded for invitations
        """
        course = self.course_service.get_managed_course(course_id, ctx)
        if not course.published:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Publish the course before adding attendees",
            )

        users = Repository(self.db, User)
        email = attendee_in.email.lower()
        user = users.first(email=email)
        temporary_password = None

        if user is not None:
            if not user.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="This account is deactivated",
                )
            if user.id == course.instructor_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="The course instructor cannot attend their own course",
                )
            if self.enrollments.first(user_id=user.id, course_id=course_id):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="This user is already enrolled",
                )

        try:
            if user is None:
                temporary_password = secrets.token_urlsafe(12)
                user = users.create(
                    commit=False,
                    email=email,
                    name=attendee_in.name or email.split("@")[0],
                    hashed_password=PasswordHelper.hash_password(temporary_password),
                    role=Role.LEARNER.value,
                )
            enrollment = self.enrollments.create(
                commit=False,
                user_id=user.id,
                course_id=course_id,
                progress={},
                enrolled_at=datetime.utcnow(),
            )
            self.db.commit()
        except DBException as e:
            self.db.rollback()
            if e.status_code == status.HTTP_409_CONFLICT:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="This user is already enrolled",
                )
            raise

        self.db.refresh(enrollment)
        # Mock invitation mail
        logger.info(
            f"📧 Invitation to '{course.title}' sent to {email}"
            f"{' with a temporary password' if temporary_password else ''}"
        )
        return enrollment, user, temporary_password

    def contact_attendees(
        self, course_id: int, message: ContactAttendeesRequest, ctx: SessionContext
    ) -> int:
        """Broadcast a message to every enrolled learner. Returns the recipient count."""
        course = self.course_service.get_managed_course(course_id, ctx)
        recipients = [
            email
            for (email,) in self.db.query(User.email)
            .join(Enrollment, Enrollment.user_id == User.id)
            .filter(Enrollment.course_id == course_id)
        ]
        # Mock mail delivery
        logger.info(
            f"📧 '{message.subject}' sent to {len(recipients)} attendee(s) of '{course.title}'"
        )
        return len(recipients)

    # ==================== Listings ====================

    def get_my_enrollments(
        self, ctx: SessionContext, page: int = 1, size: int = 20
    ) -> Tuple[List[Enrollment], dict]:
        query = (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == ctx.user_id)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        )
        return paginate(query, page, size)

    def get_instructor_enrollments(
        self,
        ctx: SessionContext,
        course_id: Optional[int] = None,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Enrollment], dict]:
        """Enrollments across the courses the caller teaches"""
        query = (
            self.db.query(Enrollment)
            .join(Course, Course.id == Enrollment.course_id)
            .filter(Course.instructor_id == ctx.user_id)
        )
        if course_id is not None:
            query = query.filter(Enrollment.course_id == course_id)
        query = query.order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        return paginate(query, page, size)

    def get_all_enrollments(
        self, page: int = 1, size: int = 20, course_id: Optional[int] = None
    ) -> Tuple[List[Enrollment], dict]:
        query = self.db.query(Enrollment)
        if course_id is not None:
            query = query.filter(Enrollment.course_id == course_id)
        query = query.order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        return paginate(query, page, size)

    @staticmethod
    def to_response(enrollment: Enrollment) -> EnrollmentResponse:
        response = EnrollmentResponse.model_validate(enrollment)
        response.course_title = enrollment.course.title if enrollment.course else None
        response.user_name = enrollment.user.name if enrollment.user else None
        return response
