"""
Tests for the in-process live quiz session registry
"""

from datetime import datetime, timedelta

import pytest

from learnsphere.quiz.proctoring import ProctorEvent, ProctorEventType
from learnsphere.quiz.registry import QuizSessionRegistry
from learnsphere.quiz.session import QuizSession

QUESTIONS = [{"question_text": "Q", "options": ["a", "b"], "correct_answer": 0}]


@pytest.fixture
def registry():
    return QuizSessionRegistry(ttl_minutes=30)


def open_session(registry, user_id=1, quiz_id=10):
    session = QuizSession(QUESTIONS)
    session.start()
    return registry.open(
        user_id=user_id,
        quiz_id=quiz_id,
        lesson_id=5,
        course_id=3,
        enrollment_id=7,
        session=session,
        quiz_title="Checkpoint",
    )


def test_open_activates_monitor_and_requests_fullscreen(registry):
    entry = open_session(registry)

    assert registry.get(entry.id) is entry
    assert entry.monitor.is_active is True
    assert entry.fullscreen_requests == 1
    assert len(registry) == 1


def test_monitor_listens_on_the_session_hub(registry):
    entry = open_session(registry)
    entry.hub.dispatch(ProctorEvent(ProctorEventType.VISIBILITY_CHANGE, hidden=True))

    assert entry.monitor.counters.tab_switches == 1
    assert entry.violations == [{"type": "tab_switch", "count": 1}]


def test_discard_closes_monitor(registry):
    entry = open_session(registry)

    assert registry.discard(entry.id) is True
    assert registry.get(entry.id) is None
    assert entry.monitor.is_active is False
    assert entry.hub.listener_count() == 0
    assert registry.discard(entry.id) is False


def test_expired_sessions_are_dropped_on_access(registry):
    entry = open_session(registry)
    entry.expires_at = datetime.utcnow() - timedelta(seconds=1)

    assert registry.get(entry.id) is None
    assert entry.monitor.is_active is False
    assert len(registry) == 0


def test_access_extends_expiry(registry):
    entry = open_session(registry)
    entry.expires_at = datetime.utcnow() + timedelta(minutes=1)

    registry.get(entry.id)
    assert entry.expires_at > datetime.utcnow() + timedelta(minutes=29)


def test_purge_expired(registry):
    fresh = open_session(registry, quiz_id=1)
    stale = open_session(registry, quiz_id=2)
    stale.expires_at = datetime.utcnow() - timedelta(minutes=1)

    assert registry.purge_expired() == 1
    assert registry.get(fresh.id) is fresh
    assert registry.get(stale.id) is None


def test_sessions_for_user(registry):
    mine = open_session(registry, user_id=1)
    open_session(registry, user_id=2)

    assert registry.sessions_for_user(1) == [mine]
