# learnsphere/models/attempt.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer
from sqlalchemy.sql import func

from learnsphere.core.database import Base, JSONType


class Attempt(Base):
    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False, index=True)

    # Attempt data
    attempt_number = Column(Integer, nullable=False, default=1)
    score = Column(Integer, nullable=False)  # Number of correct answers
    total = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    points_awarded = Column(Integer, nullable=False, default=0)
    answers = Column(
        JSONType, nullable=False
    )  # [{"question_index": 0, "selected_answer": 1, "correct_answer": 1, "is_correct": true}, ...]

    # Client-observed proctoring counters, stored unverified:
    # {"tab_switches": 2, "full_screen_exits": 1, "webcam_enabled": false}
    proctoring = Column(JSONType, nullable=True)

    # Time tracking
    started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Attempt(id={self.id}, user_id={self.user_id}, score={self.score}/{self.total}, passed={self.passed})>"
