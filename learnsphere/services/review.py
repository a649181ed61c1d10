# learnsphere/services/review.py
import logging
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy import Float, cast
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.decorator import DBException
from learnsphere.core.repository import Repository
from learnsphere.models.course import Course
from learnsphere.models.review import Review
from learnsphere.schemas.review import ReviewCreate
from learnsphere.services.course import CourseService
from learnsphere.utils.pagination import paginate

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.reviews = Repository(db, Review)
        self.courses = Repository(db, Course)
        self.course_service = CourseService(db)

    def create_review(
        self, course_id: int, review_in: ReviewCreate, ctx: SessionContext
    ) -> Tuple[Review, Course]:
        """
        Post a review and fold it into the course rating.

        The aggregate is a single UPDATE computed from the row's current
        values, so concurrent reviews never overwrite each other.
        """
        course = self.course_service.get_visible_course(course_id, ctx)

        if not course.allow_reviews:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reviews are disabled for this course",
            )

        if course.instructor_id == ctx.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Instructors cannot review their own course",
            )

        try:
            review = self.reviews.create(
                commit=False,
                course_id=course_id,
                user_id=ctx.user_id,
                user_name=ctx.user.name,
                rating=review_in.rating,
                comment=review_in.comment,
            )
            self.courses.atomic_update(
                course_id,
                {
                    "reviews_count": Course.reviews_count + 1,
                    "rating_sum": Course.rating_sum + review_in.rating,
                    "rating": cast(Course.rating_sum + review_in.rating, Float)
                    / (Course.reviews_count + 1),
                },
                commit=False,
            )
            self.db.commit()
        except DBException:
            self.db.rollback()
            raise

        self.db.refresh(review)
        self.db.refresh(course)
        logger.info(
            f"⭐ Review {review.id} ({review.rating}/5) on course {course_id}, "
            f"rating now {course.rating:.2f} over {course.reviews_count} reviews"
        )
        return review, course

    def get_reviews(
        self, course_id: int, ctx, page: int = 1, size: int = 20
    ) -> Tuple[List[Review], dict]:
        self.course_service.get_visible_course(course_id, ctx)
        query = (
            self.db.query(Review)
            .filter(Review.course_id == course_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return paginate(query, page, size)
