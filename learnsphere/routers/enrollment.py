# learnsphere/routers/enrollment.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context, require_roles
from learnsphere.schemas.auth import UserResponse
from learnsphere.schemas.enrollment import (
    AttendeeCreate,
    AttendeeResponse,
    ContactAttendeesRequest,
    ContactAttendeesResponse,
    EnrollmentCreate,
    EnrollmentListResponse,
    EnrollmentProgressResponse,
    EnrollmentResponse,
)
from learnsphere.services.enrollment import EnrollmentService

router = APIRouter(
    prefix="/enrollments",
    tags=["Enrollments"],
    responses={404: {"description": "Not found"}},
)


@router.post("/", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
def enroll(
    enrollment_in: EnrollmentCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Enroll in a published course. Awards enrollment points once."""
    enrollment = EnrollmentService(db).enroll(enrollment_in.course_id, ctx)
    return EnrollmentService.to_response(enrollment)


@router.get("/me", response_model=EnrollmentListResponse)
def list_my_enrollments(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    enrollments, pagination = EnrollmentService(db).get_my_enrollments(ctx, page, size)
    return {
        "enrollments": [EnrollmentService.to_response(e) for e in enrollments],
        **pagination,
    }


@router.get("/instructor", response_model=EnrollmentListResponse)
def list_instructor_enrollments(
    course_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR)),
):
    """Learners enrolled in the caller's courses"""
    enrollments, pagination = EnrollmentService(db).get_instructor_enrollments(
        ctx, course_id, page, size
    )
    return {
        "enrollments": [EnrollmentService.to_response(e) for e in enrollments],
        **pagination,
    }


@router.get("/", response_model=EnrollmentListResponse)
def list_all_enrollments(
    course_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.ADMIN)),
):
    enrollments, pagination = EnrollmentService(db).get_all_enrollments(
        page, size, course_id
    )
    return {
        "enrollments": [EnrollmentService.to_response(e) for e in enrollments],
        **pagination,
    }


@router.get("/course/{course_id}", response_model=EnrollmentResponse)
def get_my_enrollment(
    course_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """The caller's progress in one course"""
    enrollment = EnrollmentService(db).get_enrollment(course_id, ctx)
    return EnrollmentService.to_response(enrollment)


@router.put(
    "/course/{course_id}/lessons/{lesson_id}/complete",
    response_model=EnrollmentProgressResponse,
)
def complete_lesson(
    course_id: int,
    lesson_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """
    Mark a non-quiz lesson completed for LESSON_POINTS.
    Completing a lesson twice awards nothing the second time.
    """
    enrollment, awarded = EnrollmentService(db).complete_lesson(
        course_id, lesson_id, ctx
    )
    return {
        "enrollment": EnrollmentService.to_response(enrollment),
        "points_awarded": awarded,
        "user_points": ctx.user.points,
    }


@router.post(
    "/course/{course_id}/attendees",
    response_model=AttendeeResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_attendee(
    course_id: int,
    attendee_in: AttendeeCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    """
    Enroll a learner by email on their behalf.
    Unknown emails get a learner account and a one-time temporary password.
    """
    enrollment, user, temporary_password = EnrollmentService(db).add_attendee(
        course_id, attendee_in, ctx
    )
    return {
        "user": UserResponse.model_validate(user),
        "enrollment": EnrollmentService.to_response(enrollment),
        "created": temporary_password is not None,
        "temporary_password": temporary_password,
    }


@router.post(
    "/course/{course_id}/attendees/contact", response_model=ContactAttendeesResponse
)
def contact_attendees(
    course_id: int,
    message: ContactAttendeesRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
):
    count = EnrollmentService(db).contact_attendees(course_id, message, ctx)
    return {"success": True, "count": count}
