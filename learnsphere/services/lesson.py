# learnsphere/services/lesson.py
import logging
from typing import List, Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.repository import Repository
from learnsphere.models.lesson import Lesson
from learnsphere.schemas.lesson import LessonCreate, LessonResponse, LessonUpdate
from learnsphere.services.course import CourseService
from learnsphere.utils.file_upload import file_upload_service

logger = logging.getLogger(__name__)


class LessonService:
    def __init__(self, db: Session):
        self.db = db
        self.lessons = Repository(db, Lesson)
        self.course_service = CourseService(db)

    def get_lesson(self, course_id: int, lesson_id: int) -> Lesson:
        lesson = self.lessons.first(id=lesson_id, course_id=course_id)
        if not lesson:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found"
            )
        return lesson

    def get_lessons(
        self, course_id: int, ctx: Optional[SessionContext]
    ) -> List[Lesson]:
        self.course_service.get_visible_course(course_id, ctx)
        return self.lessons.query(order_by=Lesson.position, course_id=course_id)

    def create_lesson(
        self, course_id: int, lesson_in: LessonCreate, ctx: SessionContext
    ) -> Lesson:
        self.course_service.get_managed_course(course_id, ctx)

        data = lesson_in.model_dump()
        if data.get("position") is None:
            max_position = (
                self.db.query(func.max(Lesson.position))
                .filter(Lesson.course_id == course_id)
                .scalar()
            )
            data["position"] = 0 if max_position is None else max_position + 1

        lesson = self.lessons.create(course_id=course_id, **data)
        logger.info(f"Lesson {lesson.id} added to course {course_id}")
        return lesson

    def update_lesson(
        self,
        course_id: int,
        lesson_id: int,
        lesson_in: LessonUpdate,
        ctx: SessionContext,
    ) -> Lesson:
        self.course_service.get_managed_course(course_id, ctx)
        lesson = self.get_lesson(course_id, lesson_id)
        data = lesson_in.model_dump(exclude_unset=True)
        if lesson.quiz is not None and data.get("lesson_type", "quiz") != "quiz":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Lessons with a quiz must stay quiz lessons",
            )
        return self.lessons.update(lesson, **data)

    def delete_lesson(self, course_id: int, lesson_id: int, ctx: SessionContext) -> None:
        self.course_service.get_managed_course(course_id, ctx)
        lesson = self.get_lesson(course_id, lesson_id)
        self.lessons.delete(lesson)
        logger.info(f"Lesson {lesson_id} deleted from course {course_id}")

    async def upload_lesson_media(
        self,
        course_id: int,
        lesson_id: int,
        media_file: UploadFile,
        kind: str,
        ctx: SessionContext,
    ) -> Lesson:
        """Store a video, document or image as the lesson content"""
        self.course_service.get_managed_course(course_id, ctx)
        lesson = self.get_lesson(course_id, lesson_id)
        if lesson.quiz is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quiz lessons cannot hold uploaded media",
            )

        _, relative_path = await file_upload_service.save(
            media_file, kind, folder="lessons"
        )
        old_content = lesson.content_url
        lesson = self.lessons.update(
            lesson,
            content_url=file_upload_service.public_url(relative_path),
            lesson_type=kind,
        )
        file_upload_service.delete_public_url(old_content)
        return lesson

    @staticmethod
    def to_response(lesson: Lesson) -> LessonResponse:
        response = LessonResponse.model_validate(lesson)
        response.has_quiz = lesson.quiz is not None
        return response
