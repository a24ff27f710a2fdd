"""Checkpointing of quiz progress in the LMS ``cmi.suspend_data`` field."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scorm_quiz.constants.scorm_constants import FIELD_SUSPEND_DATA, SUSPEND_DATA_LIMIT
from scorm_quiz.core.models import QuizSession
from scorm_quiz.core.services.host_connection import HostConnection

logger = logging.getLogger(__name__)

_MAX_TIMESPAN_SECONDS = 9999 * 3600 + 59 * 60 + 59


class ProgressSnapshot(BaseModel):
    """Wire form of a quiz session: ``{"currentQuestionIndex": n, "score": m}``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, strict=True)

    current_question_index: int = Field(alias="currentQuestionIndex", ge=0)
    score: int = Field(default=0, ge=0)

    @classmethod
    def from_session(cls, session: QuizSession) -> ProgressSnapshot:
        return cls(current_question_index=session.current_question_index, score=session.score)

    def encode(self) -> str:
        return self.model_dump_json(by_alias=True)


class ProgressStore:
    """Saves, loads and clears the progress snapshot through the host connection."""

    def __init__(self, host: HostConnection, size_limit: int = SUSPEND_DATA_LIMIT) -> None:
        self._host = host
        self._size_limit = size_limit

    def save(self, session: QuizSession) -> bool:
        encoded = ProgressSnapshot.from_session(session).encode()
        if len(encoded) > self._size_limit:
            logger.warning(
                "Suspend data is %d characters, over the %d character limit.",
                len(encoded),
                self._size_limit,
            )
        return self._write(encoded)

    def load(self) -> ProgressSnapshot | None:
        raw = self._host.get_field(FIELD_SUSPEND_DATA)
        if not raw:
            return None
        try:
            snapshot = ProgressSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Discarding unreadable suspend data %r: %s", raw, exc)
            self.clear()
            return None
        logger.info("Found saved progress: %s", snapshot.encode())
        return snapshot

    def clear(self) -> bool:
        return self._write("")

    def _write(self, value: str) -> bool:
        written = self._host.set_field(FIELD_SUSPEND_DATA, value)
        committed = self._host.commit()
        return written and committed


def format_session_time(elapsed_seconds: float) -> str:
    """Format a duration as a SCORM 1.2 CMITimespan (``HH:MM:SS``)."""
    total = min(int(max(0.0, elapsed_seconds) + 0.5), _MAX_TIMESPAN_SECONDS)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_score(value: int) -> str:
    return str(int(value))
