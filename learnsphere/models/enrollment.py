# learnsphere/models/enrollment.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from learnsphere.core.database import Base, JSONType


class Enrollment(Base):
    """
    Tracks a learner's enrollment in a course and per-lesson progress.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)

    # Lesson progress keyed by lesson id (as string):
    # {"12": {"attempts": 1, "completed": true, "completed_at": "..."}}
    progress = Column(JSONType, nullable=False, default=dict)
    progress_percent = Column(Integer, default=0, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)  # In minutes

    # Optimistic lock: a write from a stale copy raises StaleDataError
    version_id = Column(Integer, nullable=False)

    # Timestamps
    enrolled_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    last_active = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Enrollment(id={self.id}, user_id={self.user_id}, course_id={self.course_id}, progress={self.progress_percent}%)>"
