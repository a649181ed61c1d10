# learnsphere/models/course.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from learnsphere.core.database import Base, JSONType


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)

    # Catalog information
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    short_description = Column(String(500), nullable=True)
    image_url = Column(Text, nullable=True)
    duration = Column(String(50), nullable=True)  # Display only, e.g. "8 weeks"
    level = Column(
        String(20), nullable=False, default="Beginner"
    )  # Beginner, Intermediate, Advanced
    tags = Column(JSONType, nullable=False, default=list)
    category = Column(String(100), nullable=True, index=True)
    website_url = Column(String(500), nullable=True)

    # Ownership
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Publishing & access
    published = Column(Boolean, default=False, nullable=False)
    visibility = Column(
        String(20), nullable=False, default="everyone"
    )  # everyone, signed-in
    access_rule = Column(
        String(20), nullable=False, default="open"
    )  # open, invitation, payment
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_paid = Column(Boolean, default=False, nullable=False)
    allow_reviews = Column(Boolean, default=True, nullable=False)

    # Counters (updated atomically, never read-modify-write)
    views_count = Column(Integer, default=0, nullable=False)
    reviews_count = Column(Integer, default=0, nullable=False)
    rating_sum = Column(Integer, default=0, nullable=False)
    rating = Column(Float, nullable=True)  # Null until the first review

    # Timestamps
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
        return f"<Course(id={self.id}, title='{self.title}', published={self.published})>"
