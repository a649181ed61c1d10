# learnsphere/services/progress.py
"""
Course progress bookkeeping for one learner's enrollment.

The tracker stages its changes on the session without committing, so a quiz
submission can persist the attempt and the progress update in one
transaction.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from learnsphere.core.decorator import DBException, db_exception
from learnsphere.core.repository import Repository
from learnsphere.models.enrollment import Enrollment
from learnsphere.models.lesson import Lesson
from learnsphere.models.user import User

logger = logging.getLogger(__name__)


def lesson_progress(enrollment: Enrollment, lesson_id: int) -> Dict[str, Any]:
    return dict((enrollment.progress or {}).get(str(lesson_id)) or {})


def failed_attempts(enrollment: Optional[Enrollment], lesson_id: int) -> int:
    if enrollment is None:
        return 0
    return int(lesson_progress(enrollment, lesson_id).get("attempts", 0))


class EnrollmentProgressTracker:
    def __init__(self, db: Session, enrollment: Enrollment, lesson_id: int):
        self.db = db
        self.enrollment = enrollment
        self.lesson_id = lesson_id
        self.points_awarded = 0

    # Quiz hooks
    def on_quiz_passed(self, points: int) -> None:
        self.complete_lesson(points)

    def on_quiz_failed(self, failed_attempts: int) -> None:
        entry = lesson_progress(self.enrollment, self.lesson_id)
        entry["attempts"] = failed_attempts
        entry.setdefault("completed", False)
        self._store(entry)
        self._flush()

    def complete_lesson(self, points: int) -> bool:
        """
        Mark the lesson completed and award ``points`` to the learner.

        Returns False without awarding anything if it was already completed.
        The progress write is flushed before the points are added, so when two
        requests complete the same lesson only the first one gets through; the
        other fails with a 409 and awards nothing.
        """
        entry = lesson_progress(self.enrollment, self.lesson_id)
        if entry.get("completed"):
            logger.info(
                f"Lesson {self.lesson_id} already completed in enrollment {self.enrollment.id}"
            )
            return False

        now = datetime.utcnow()
        entry.setdefault("attempts", 0)
        entry["completed"] = True
        entry["completed_at"] = now.isoformat()
        self._store(entry)
        self._recompute_percent(now)
        self._flush()

        if points:
            Repository(self.db, User).atomic_update(
                self.enrollment.user_id,
                {"points": User.points + points},
                commit=False,
            )
        self.points_awarded = points
        return True

    def _store(self, entry: Dict[str, Any]) -> None:
        progress = dict(self.enrollment.progress or {})
        progress[str(self.lesson_id)] = entry
        self.enrollment.progress = progress
        flag_modified(self.enrollment, "progress")

        now = datetime.utcnow()
        if self.enrollment.started_at is None:
            self.enrollment.started_at = now
        self.enrollment.last_active = now

    @db_exception
    def _flush(self) -> None:
        try:
            self.db.flush()
        except StaleDataError:
            logger.warning(
                f"Concurrent progress update on enrollment {self.enrollment.id}, "
                f"lesson {self.lesson_id}"
            )
            raise DBException(
                "Your progress was updated by another request. Please try again.", 409
            )

    def _recompute_percent(self, now: datetime) -> None:
        # Entries of deleted lessons stay in the map but no longer count
        lesson_ids = {
            str(lesson_id)
            for (lesson_id,) in self.db.query(Lesson.id).filter(
                Lesson.course_id == self.enrollment.course_id
            )
        }
        completed = sum(
            1
            for lesson_id, entry in (self.enrollment.progress or {}).items()
            if lesson_id in lesson_ids and entry.get("completed")
        )

        percent = min(100, round(completed / len(lesson_ids) * 100)) if lesson_ids else 0
        self.enrollment.progress_percent = percent

        if percent >= 100 and not self.enrollment.completed:
            self.enrollment.completed = True
            self.enrollment.completed_at = now
            logger.info(
                f"🎓 User {self.enrollment.user_id} completed course {self.enrollment.course_id}"
            )
