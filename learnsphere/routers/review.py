from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_optional_context, get_session_context
from learnsphere.schemas.review import (
    ReviewCreate,
    ReviewCreatedResponse,
    ReviewListResponse,
)
from learnsphere.services.review import ReviewService

router = APIRouter(
    prefix="/courses/{course_id}/reviews",
    tags=["Reviews"],
    responses={404: {"description": "Not found"}},
)


@router.post(
    "/", response_model=ReviewCreatedResponse, status_code=status.HTTP_201_CREATED
)
def create_review(
    course_id: int,
    review_in: ReviewCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    review, course = ReviewService(db).create_review(course_id, review_in, ctx)
    return {
        "review": review,
        "course": {
            "course_id": course.id,
            "rating": course.rating,
            "reviews_count": course.reviews_count,
        },
    }


@router.get("/", response_model=ReviewListResponse)
def list_reviews(
    course_id: int,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_context),
):
    reviews, pagination = ReviewService(db).get_reviews(course_id, ctx, page, size)
    return {"reviews": reviews, **pagination}
