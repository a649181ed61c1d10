# learnsphere/services/course.py
import logging
import math
from typing import List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.repository import Repository
from learnsphere.models.course import Course
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.lesson import Lesson
from learnsphere.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from learnsphere.utils.file_upload import file_upload_service

logger = logging.getLogger(__name__)


class CourseService:
    def __init__(self, db: Session):
        self.db = db
        self.courses = Repository(db, Course)

    # ==================== Access ====================

    def get_course(self, course_id: int) -> Course:
        course = self.courses.get(course_id)
        if not course:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
            )
        return course

    def get_visible_course(
        self, course_id: int, ctx: Optional[SessionContext]
    ) -> Course:
        """Drafts are visible only to the owning instructor and admins"""
        course = self.get_course(course_id)
        if course.published:
            return course
        if ctx is not None and ctx.can_manage(course.instructor_id):
            return course
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
        )

    def get_managed_course(self, course_id: int, ctx: SessionContext) -> Course:
        """Course the caller may edit, or 403"""
        course = self.get_course(course_id)
        if not ctx.can_manage(course.instructor_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the course instructor or an admin can modify this course",
            )
        return course

    # ==================== CRUD ====================

    def create_course(self, course_in: CourseCreate, ctx: SessionContext) -> Course:
        data = course_in.model_dump()
        data["is_paid"] = data["price"] > 0
        course = self.courses.create(instructor_id=ctx.user_id, **data)
        logger.info(f"📚 Course created: {course.id} by user {ctx.user_id}")
        return course

    def update_course(
        self, course_id: int, course_in: CourseUpdate, ctx: SessionContext
    ) -> Course:
        course = self.get_managed_course(course_id, ctx)
        data = course_in.model_dump(exclude_unset=True)
        if "price" in data and data["price"] is not None:
            data["is_paid"] = data["price"] > 0
        return self.courses.update(course, **data)

    def delete_course(self, course_id: int, ctx: SessionContext) -> None:
        course = self.get_managed_course(course_id, ctx)
        image_url = course.image_url
        self.courses.delete(course)
        file_upload_service.delete_public_url(image_url)
        logger.info(f"🗑️ Course deleted: {course_id} by user {ctx.user_id}")

    async def upload_course_image(
        self, course_id: int, image_file: UploadFile, ctx: SessionContext
    ) -> Course:
        course = self.get_managed_course(course_id, ctx)

        _, relative_path = await file_upload_service.save(
            image_file, "image", folder="courses"
        )
        old_image = course.image_url
        course = self.courses.update(
            course, image_url=file_upload_service.public_url(relative_path)
        )
        # Delete old image once the new one is referenced
        file_upload_service.delete_public_url(old_image)
        return course

    def increment_views(self, course_id: int) -> None:
        self.courses.atomic_update(
            course_id, {"views_count": Course.views_count + 1}
        )

    # ==================== Catalog ====================

    def get_courses(
        self,
        ctx: Optional[SessionContext],
        page: int = 1,
        size: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        instructor_id: Optional[int] = None,
        include_drafts: bool = False,
    ) -> Tuple[List[Course], dict]:
        """
        Catalog listing.

        Everyone sees published courses. With ``include_drafts`` instructors
        also see their own drafts and admins see every draft.
        """
        query = self.db.query(Course)

        if include_drafts and ctx is not None and ctx.is_admin:
            pass
        elif include_drafts and ctx is not None and ctx.is_instructor:
            query = query.filter(
                or_(Course.published.is_(True), Course.instructor_id == ctx.user_id)
            )
        else:
            query = query.filter(Course.published.is_(True))

        if instructor_id is not None:
            query = query.filter(Course.instructor_id == instructor_id)

        if category:
            query = query.filter(Course.category == category)

        if search:
            search_pattern = f"%{search.lower()}%"
            # Tags live in a JSON array; match against its serialized text
            query = query.filter(
                or_(
                    func.lower(Course.title).like(search_pattern),
                    func.lower(cast(Course.tags, String)).like(search_pattern),
                )
            )

        total = query.count()

        offset = (page - 1) * size
        courses = (
            query.order_by(Course.created_at.desc(), Course.id.desc())
            .offset(offset)
            .limit(size)
            .all()
        )

        total_pages = math.ceil(total / size) if size > 0 else 0
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": total_pages,
        }

        return courses, pagination

    def get_categories(self) -> List[str]:
        rows = (
            self.db.query(Course.category)
            .filter(Course.published.is_(True), Course.category.isnot(None))
            .distinct()
            .order_by(Course.category)
            .all()
        )
        return [row[0] for row in rows]

    # ==================== Serialization ====================

    def to_response(self, course: Course) -> CourseResponse:
        lessons_count = (
            self.db.query(func.count(Lesson.id))
            .filter(Lesson.course_id == course.id)
            .scalar()
            or 0
        )
        students_count = (
            self.db.query(func.count(Enrollment.id))
            .filter(Enrollment.course_id == course.id)
            .scalar()
            or 0
        )
        response = CourseResponse.model_validate(course)
        response.instructor_name = course.instructor.name if course.instructor else None
        response.lessons_count = lessons_count
        response.students_count = students_count
        return response
