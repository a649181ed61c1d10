"""
Models package initialization
Import all models and setup relationships
"""

from .attempt import Attempt
from .course import Course
from .enrollment import Enrollment
from .lesson import Lesson
from .quiz import Quiz

# Import and setup relationships
from .relations import setup_relationships
from .review import Review
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Attempt",
    "Course",
    "Enrollment",
    "Lesson",
    "Quiz",
    "Review",
    "User",
]
