"""
Shared fixtures for the LearnSphere test suite.

Settings are read when learnsphere is first imported, so the environment is
prepared here before anything from the application is loaded.
"""

import os
import tempfile
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="learnsphere-storage-"))

import pytest
from fastapi.testclient import TestClient

from learnsphere.core.config import settings
from learnsphere.core.database import Base, engine
from learnsphere.quiz.registry import quiz_session_registry
from main import app

PASSWORD = "Password123"
CORRECT_ANSWERS = [1, 0, 2]

QUESTIONS = [
    {
        "question_text": "Which keyword defines a function in Python?",
        "options": ["func", "def", "lambda"],
        "correct_answer": 1,
    },
    {
        "question_text": "What does len([1, 2, 3]) return?",
        "options": ["3", "2", "An error"],
        "correct_answer": 0,
    },
    {
        "question_text": "Which type is immutable?",
        "options": ["list", "dict", "tuple"],
        "correct_answer": 2,
    },
]


def auth_headers(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


def signup(client, name: str, email: str, role: str = "learner") -> dict:
    response = client.post(
        "/auth/signup",
        json={"name": name, "email": email, "password": PASSWORD, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email: str, password: str = PASSWORD) -> dict:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def client():
    """Fresh schema, seeded admin and no live quiz sessions for every test."""
    Base.metadata.drop_all(bind=engine)
    quiz_session_registry.purge_expired(now=datetime.max)
    with TestClient(app) as test_client:
        yield test_client
    quiz_session_registry.purge_expired(now=datetime.max)


@pytest.fixture
def admin(client):
    tokens = login(client, settings.admin_default_email, settings.admin_default_password)
    return {"user": tokens["user"], "headers": auth_headers(tokens)}


@pytest.fixture
def instructor(client):
    tokens = signup(client, "Ada Instructor", "ada@example.com", role="instructor")
    return {"user": tokens["user"], "headers": auth_headers(tokens)}


@pytest.fixture
def learner(client):
    tokens = signup(client, "Lin Learner", "lin@example.com")
    return {"user": tokens["user"], "headers": auth_headers(tokens)}


@pytest.fixture
def other_learner(client):
    tokens = signup(client, "Sam Learner", "sam@example.com")
    return {"user": tokens["user"], "headers": auth_headers(tokens)}


@pytest.fixture
def course(client, instructor):
    """
    A published course with a video lesson followed by a 3-question quiz
    lesson whose correct options are [1, 0, 2].
    """
    headers = instructor["headers"]
    response = client.post(
        "/courses/",
        json={
            "title": "Python Basics",
            "description": "Learn the fundamentals of Python",
            "category": "Programming",
            "tags": ["python", "beginner"],
            "published": True,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    course_data = response.json()
    course_id = course_data["id"]

    video = client.post(
        f"/courses/{course_id}/lessons/",
        json={"title": "Welcome", "lesson_type": "video"},
        headers=headers,
    ).json()
    quiz_lesson = client.post(
        f"/courses/{course_id}/lessons/",
        json={"title": "Checkpoint", "lesson_type": "quiz"},
        headers=headers,
    ).json()

    response = client.post(
        "/quizzes/",
        json={
            "lesson_id": quiz_lesson["id"],
            "title": "Python Checkpoint",
            "questions": QUESTIONS,
            "rewards": {"1": 100, "2": 50, "3": 25},
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text

    return {
        "id": course_id,
        "video_lesson_id": video["id"],
        "quiz_lesson_id": quiz_lesson["id"],
        "quiz_id": response.json()["id"],
    }


@pytest.fixture
def enrolled_learner(client, course, learner):
    response = client.post(
        "/enrollments/", json={"course_id": course["id"]}, headers=learner["headers"]
    )
    assert response.status_code == 201, response.text
    return learner
