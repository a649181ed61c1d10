from .attempt import router as attempt_router
from .auth import router as auth_router
from .course import router as course_router
from .dashboard import router as dashboard_router
from .enrollment import router as enrollment_router
from .lesson import router as lesson_router
from .quiz import router as quiz_router
from .quiz_session import router as quiz_session_router
from .review import router as review_router
from .user import router as user_router

routes = [
    auth_router,
    user_router,
    dashboard_router,
    course_router,
    lesson_router,
    review_router,
    enrollment_router,
    quiz_router,
    quiz_session_router,
    attempt_router,
]
