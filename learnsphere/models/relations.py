# learnsphere/models/relations.py

from sqlalchemy.orm import relationship

# Import all relevant models
from .attempt import Attempt
from .course import Course
from .enrollment import Enrollment
from .lesson import Lesson
from .quiz import Quiz
from .review import Review
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Course System Relationships ---

    # 1. Instructor to Courses (One-to-Many)
    User.courses = relationship(
        "Course",
        back_populates="instructor",
        cascade="all, delete-orphan",
    )
    Course.instructor = relationship("User", back_populates="courses")

    # 2. Course to Lessons (One-to-Many)
    Course.lessons = relationship(
        "Lesson",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Lesson.position",
    )
    Lesson.course = relationship("Course", back_populates="lessons")

    # 3. Lesson to Quiz (One-to-One)
    Lesson.quiz = relationship(
        "Quiz",
        back_populates="lesson",
        uselist=False,
        cascade="all, delete-orphan",
    )
    Quiz.lesson = relationship("Lesson", back_populates="quiz")

    # 4. Course to Quizzes (One-to-Many) - direct reference
    Course.quizzes = relationship(
        "Quiz",
        back_populates="course",
        viewonly=True,
    )
    Quiz.course = relationship("Course", back_populates="quizzes", viewonly=True)

    # --- Enrollment Relationships ---

    # 5. Course to Enrollments (One-to-Many)
    Course.enrollments = relationship(
        "Enrollment",
        back_populates="course",
        cascade="all, delete-orphan",
    )
    Enrollment.course = relationship("Course", back_populates="enrollments")

    # 6. User to Enrollments (One-to-Many)
    User.enrollments = relationship(
        "Enrollment",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    Enrollment.user = relationship("User", back_populates="enrollments")

    # --- Attempt Relationships ---

    # 7. Quiz to Attempts (One-to-Many)
    Quiz.attempts = relationship(
        "Attempt",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Attempt.created_at.desc()",
    )
    Attempt.quiz = relationship("Quiz", back_populates="attempts")

    # 8. User to Attempts (One-to-Many)
    User.attempts = relationship(
        "Attempt",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    Attempt.user = relationship("User", back_populates="attempts")

    # 9. Course to Attempts (One-to-Many) - direct reference
    Course.attempts = relationship(
        "Attempt",
        back_populates="course",
        viewonly=True,
    )
    Attempt.course = relationship("Course", back_populates="attempts", viewonly=True)

    # --- Review Relationships ---

    # 10. Course to Reviews (One-to-Many)
    Course.reviews = relationship(
        "Review",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Review.created_at.desc()",
    )
    Review.course = relationship("Course", back_populates="reviews")

    # 11. User to Reviews (One-to-Many)
    User.reviews = relationship(
        "Review",
        back_populates="author",
        cascade="all, delete-orphan",
    )
    Review.author = relationship("User", back_populates="reviews")
