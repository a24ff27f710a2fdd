"""Writers for the score, status and time fields reported to the LMS."""

from __future__ import annotations

import logging

from scorm_quiz.constants.scorm_constants import (
    FIELD_LESSON_STATUS,
    FIELD_SCORE_MAX,
    FIELD_SCORE_MIN,
    FIELD_SCORE_RAW,
    FIELD_SESSION_TIME,
)
from scorm_quiz.core.models import LessonStatus
from scorm_quiz.core.services.host_connection import HostConnection
from scorm_quiz.core.services.progress_store import format_score

logger = logging.getLogger(__name__)


class LmsReporter:
    """Each setter writes its fields and commits them immediately."""

    def __init__(self, host: HostConnection) -> None:
        self._host = host

    def set_score(self, raw: int, minimum: int, maximum: int) -> bool:
        written = all(
            [
                self._host.set_field(FIELD_SCORE_RAW, format_score(raw)),
                self._host.set_field(FIELD_SCORE_MIN, format_score(minimum)),
                self._host.set_field(FIELD_SCORE_MAX, format_score(maximum)),
            ]
        )
        committed = self._host.commit()
        logger.info("Score set: raw=%s, min=%s, max=%s", raw, minimum, maximum)
        return written and committed

    def set_lesson_status(self, status: LessonStatus) -> bool:
        written = self._host.set_field(FIELD_LESSON_STATUS, LessonStatus(status).value)
        committed = self._host.commit()
        logger.info("Lesson status set to: %s", LessonStatus(status).value)
        return written and committed

    def set_session_time(self, session_time: str) -> bool:
        written = self._host.set_field(FIELD_SESSION_TIME, session_time)
        committed = self._host.commit()
        logger.info("Session time set to: %s", session_time)
        return written and committed
