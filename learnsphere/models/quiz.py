# learnsphere/models/quiz.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from learnsphere.core.database import Base, JSONType


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)

    lesson_id = Column(
        Integer, ForeignKey("lessons.id"), nullable=False, unique=True, index=True
    )
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Stored as JSON array:
    # [{"question_text": "...", "options": [...], "correct_answer": 0, "explanation": "..."}]
    questions = Column(JSONType, nullable=False, default=list)

    # Reward table keyed by attempt number (as string): {"1": 100, "2": 50, ...}
    # The highest key is the overflow tier.
    rewards = Column(JSONType, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<Quiz(id={self.id}, lesson_id={self.lesson_id}, questions={len(self.questions or [])})>"
