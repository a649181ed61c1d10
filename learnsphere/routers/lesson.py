# learnsphere/routers/lesson.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_optional_context, require_roles
from learnsphere.schemas.lesson import (
    LessonCreate,
    LessonListResponse,
    LessonResponse,
    LessonUpdate,
)
from learnsphere.services.lesson import LessonService

router = APIRouter(
    prefix="/courses/{course_id}/lessons",
    tags=["Lessons"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=LessonListResponse)
def list_lessons(
    course_id: int,
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    """Lessons of a course in display order"""
    lessons = LessonService(db).get_lessons(course_id, ctx)
    return {
        "lessons": [LessonService.to_response(lesson) for lesson in lessons],
        "total": len(lessons),
    }


@router.post("/", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
def create_lesson(
    course_id: int,
    lesson_in: LessonCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    lesson = LessonService(db).create_lesson(course_id, lesson_in, ctx)
    return LessonService.to_response(lesson)


@router.get("/{lesson_id}", response_model=LessonResponse)
def get_lesson(
    course_id: int,
    lesson_id: int,
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    service = LessonService(db)
    service.course_service.get_visible_course(course_id, ctx)
    return LessonService.to_response(service.get_lesson(course_id, lesson_id))


@router.put("/{lesson_id}", response_model=LessonResponse)
def update_lesson(
    course_id: int,
    lesson_id: int,
    lesson_in: LessonUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    lesson = LessonService(db).update_lesson(course_id, lesson_id, lesson_in, ctx)
    return LessonService.to_response(lesson)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson(
    course_id: int,
    lesson_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    LessonService(db).delete_lesson(course_id, lesson_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{lesson_id}/upload-media", response_model=LessonResponse)
async def upload_lesson_media(
    course_id: int,
    lesson_id: int,
    kind: str = Query("video", pattern="^(video|document|image)$"),
    media: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    """Upload the lesson content file; the lesson type follows ``kind``"""
    lesson = await LessonService(db).upload_lesson_media(
        course_id, lesson_id, media, kind, ctx
    )
    return LessonService.to_response(lesson)
