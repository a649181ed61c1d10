# learnsphere/models/lesson.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from learnsphere.core.database import Base, JSONType


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Lesson Type: video, document, image, quiz
    lesson_type = Column(String(20), nullable=False, default="video", index=True)

    # Content source (URL/storage path); quizzes keep their questions in `quizzes`
    content_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    duration = Column(String(50), nullable=True)
    allow_download = Column(Boolean, default=False, nullable=False)

    # Attachments: [{"name": "...", "url": "...", "type": "file|link"}]
    attachments = Column(JSONType, nullable=False, default=list)

    # Order/Position in course
    position = Column(Integer, default=0, nullable=False)

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
        return f"<Lesson(id={self.id}, type='{self.lesson_type}', course_id={self.course_id})>"
