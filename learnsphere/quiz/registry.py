# learnsphere/quiz/registry.py
"""
Process-local store for live quiz sessions.

A live session pairs a QuizSession with the ProctorMonitor watching it. It
lives only in memory: abandoning or expiring a session drops its answers
and proctoring counters, the same as closing the quiz tab.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from learnsphere.core.config import settings
from learnsphere.quiz.proctoring import EventHub, ProctorMonitor
from learnsphere.quiz.session import QuizSession

logger = logging.getLogger(__name__)


@dataclass
class ActiveQuizSession:
    id: str
    user_id: int
    quiz_id: int
    lesson_id: int
    course_id: int
    enrollment_id: Optional[int]
    session: QuizSession
    hub: EventHub
    monitor: ProctorMonitor
    started_at: datetime
    expires_at: datetime
    quiz_title: str = ""
    last_attempt_id: Optional[int] = None
    fullscreen_requests: int = 0
    violations: List[dict] = field(default_factory=list)

    def touch(self, ttl: timedelta) -> None:
        self.expires_at = datetime.utcnow() + ttl

    def close(self) -> None:
        self.monitor.deactivate()


class QuizSessionRegistry:
    def __init__(self, ttl_minutes: int = settings.quiz_session_ttl_minutes):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._sessions: Dict[str, ActiveQuizSession] = {}
        self._lock = threading.Lock()

    def open(
        self,
        user_id: int,
        quiz_id: int,
        lesson_id: int,
        course_id: int,
        enrollment_id: Optional[int],
        session: QuizSession,
        quiz_title: str = "",
        warning_seconds: float = settings.proctor_warning_seconds,
    ) -> ActiveQuizSession:
        """Register a started session and activate its proctoring monitor."""
        now = datetime.utcnow()
        hub = EventHub()
        entry = ActiveQuizSession(
            id=uuid.uuid4().hex,
            user_id=user_id,
            quiz_id=quiz_id,
            lesson_id=lesson_id,
            course_id=course_id,
            enrollment_id=enrollment_id,
            session=session,
            hub=hub,
            monitor=None,
            started_at=now,
            expires_at=now + self.ttl,
            quiz_title=quiz_title,
        )

        def request_fullscreen():
            entry.fullscreen_requests += 1

        entry.monitor = ProctorMonitor(
            hub,
            request_fullscreen=request_fullscreen,
            warning_seconds=warning_seconds,
            on_violation=entry.violations.append,
        )
        entry.monitor.activate()

        with self._lock:
            self._sessions[entry.id] = entry
        logger.info(
            f"Quiz session {entry.id} opened for user {user_id} on quiz {quiz_id}"
        )
        return entry

    def get(self, session_id: str) -> Optional[ActiveQuizSession]:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            if entry.expires_at <= datetime.utcnow():
                del self._sessions[session_id]
                entry.close()
                logger.info(f"Quiz session {session_id} expired")
                return None
            entry.touch(self.ttl)
            return entry

    def discard(self, session_id: str) -> bool:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry.close()
        return True

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        with self._lock:
            expired = [
                sid for sid, entry in self._sessions.items() if entry.expires_at <= now
            ]
            entries = [self._sessions.pop(sid) for sid in expired]
        for entry in entries:
            entry.close()
        if entries:
            logger.info(f"Purged {len(entries)} expired quiz sessions")
        return len(entries)

    def sessions_for_user(self, user_id: int) -> List[ActiveQuizSession]:
        with self._lock:
            return [e for e in self._sessions.values() if e.user_id == user_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Global instance
quiz_session_registry = QuizSessionRegistry()
