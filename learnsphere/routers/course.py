# learnsphere/routers/course.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_optional_context, require_roles
from learnsphere.schemas.course import (
    CourseCreate,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
)
from learnsphere.services.course import CourseService

router = APIRouter(
    prefix="/courses",
    tags=["Courses"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=CourseListResponse)
def list_courses(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by title or tag"),
    category: Optional[str] = Query(None, description="Filter by category"),
    instructor_id: Optional[int] = Query(None, description="Filter by instructor"),
    include_drafts: bool = Query(
        False, description="Instructors also see their drafts, admins see all"
    ),
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    """
    Get list of courses with pagination and filters.
    Available to all users (authenticated or not).
    """
    service = CourseService(db)
    courses, pagination = service.get_courses(
        ctx,
        page=page,
        size=size,
        search=search,
        category=category,
        instructor_id=instructor_id,
        include_drafts=include_drafts,
    )
    return {"courses": [service.to_response(c) for c in courses], **pagination}


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    """Categories used by published courses"""
    return CourseService(db).get_categories()


@router.post("/", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    course_in: CourseCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    """
    Create a new course.
    The caller becomes its instructor.
    """
    service = CourseService(db)
    return service.to_response(service.create_course(course_in, ctx))


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    """
    Get a course by ID.
    Each view of a published course bumps its view counter.
    """
    service = CourseService(db)
    course = service.get_visible_course(course_id, ctx)
    if course.published:
        service.increment_views(course.id)
    return service.to_response(course)


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    service = CourseService(db)
    return service.to_response(service.update_course(course_id, course_in, ctx))


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    CourseService(db).delete_course(course_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{course_id}/upload-image", response_model=CourseResponse)
async def upload_course_image(
    course_id: int,
    image: UploadFile = File(..., description="Course cover image"),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    """
    Upload a cover image for a course.
    Replaces and deletes the previous image.
    """
    service = CourseService(db)
    course = await service.upload_course_image(course_id, image, ctx)
    return service.to_response(course)
