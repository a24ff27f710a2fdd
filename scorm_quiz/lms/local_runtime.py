"""In-process SCORM 1.2 runtime used when no real LMS hosts the quiz.

It implements the LMS side of the protocol for the ``cmi.core`` elements the
quiz touches, with the standard error codes. Committed values can be kept in
a JSON file so an interrupted attempt resumes on the next launch.

Architecture note:
    A real LMS stores the learner record on its own server. Here the record
    lives in a single JSON document next to the content, which is enough to
    exercise suspend/resume and the completion report end to end. Swapping in
    a database would only touch ``_load_record`` and ``_persist``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import re

from scorm_quiz.constants.scorm_constants import (
    ELEMENT_READ_ONLY,
    ELEMENT_WRITE_ONLY,
    ERROR_STRINGS,
    FAILURE_SENTINEL,
    GENERAL_EXCEPTION,
    INCORRECT_DATA_TYPE,
    INVALID_ARGUMENT,
    NO_ERROR,
    NOT_IMPLEMENTED,
    NOT_INITIALIZED,
    SUCCESS_SENTINEL,
    SUSPEND_DATA_LIMIT,
)
from scorm_quiz.core.models import LessonStatus

logger = logging.getLogger(__name__)

_TIMESPAN_PATTERN = re.compile(r"^(\d{2,4}):([0-5]\d):([0-5]\d)(\.\d{1,2})?$")
_EXIT_VALUES = {"", "time-out", "suspend", "logout"}

_READ_ONLY = {
    "cmi.core._children",
    "cmi.core.student_id",
    "cmi.core.student_name",
    "cmi.core.credit",
    "cmi.core.entry",
    "cmi.core.total_time",
    "cmi.core.lesson_mode",
    "cmi.core.score._children",
    "cmi.launch_data",
}
_WRITE_ONLY = {"cmi.core.session_time", "cmi.core.exit"}
_READ_WRITE = {
    "cmi.core.lesson_location",
    "cmi.core.lesson_status",
    "cmi.core.score.raw",
    "cmi.core.score.min",
    "cmi.core.score.max",
    "cmi.suspend_data",
}
_PERSISTED = _READ_WRITE | {"cmi.core.total_time"}


def _default_record(student_id: str, student_name: str) -> dict[str, str]:
    return {
        "cmi.core._children": (
            "student_id,student_name,lesson_location,credit,lesson_status,"
            "entry,score,total_time,lesson_mode,exit,session_time"
        ),
        "cmi.core.student_id": student_id,
        "cmi.core.student_name": student_name,
        "cmi.core.credit": "credit",
        "cmi.core.lesson_mode": "normal",
        "cmi.core.score._children": "raw,min,max",
        "cmi.core.lesson_location": "",
        "cmi.core.lesson_status": LessonStatus.NOT_ATTEMPTED.value,
        "cmi.core.score.raw": "",
        "cmi.core.score.min": "",
        "cmi.core.score.max": "",
        "cmi.core.total_time": "0000:00:00.00",
        "cmi.suspend_data": "",
        "cmi.launch_data": "",
    }


def parse_timespan(value: str) -> float | None:
    """Seconds in a CMITimespan string, or ``None`` when malformed."""
    match = _TIMESPAN_PATTERN.match(value)
    if match is None:
        return None
    hours, minutes, seconds, fraction = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + float(fraction or 0)


def format_timespan(total_seconds: float) -> str:
    hundredths = int(round(total_seconds * 100))
    whole, fraction = divmod(hundredths, 100)
    hours, remainder = divmod(whole, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{min(hours, 9999):04d}:{minutes:02d}:{seconds:02d}.{fraction:02d}"


class LocalLmsRuntime:
    """The ``API`` object a SCORM 1.2 LMS would place on the content's parent window."""

    def __init__(
        self,
        store_path: Path | None = None,
        student_id: str = "local-learner",
        student_name: str = "Learner, Local",
    ) -> None:
        self._store_path = store_path
        self._record = _default_record(student_id, student_name)
        self._record.update(self._load_record())
        self._record["cmi.core.entry"] = "resume" if self._record["cmi.suspend_data"] else "ab-initio"
        self._session_time: str = ""
        self._exit: str = ""
        self._initialized = False
        self._finished = False
        self._last_error = NO_ERROR
        self._diagnostic = ""

    # --- SCORM 1.2 API ---

    def LMSInitialize(self, parameter: str) -> str:
        if parameter != "":
            return self._fail(INVALID_ARGUMENT, "LMSInitialize expects an empty string.")
        if self._initialized or self._finished:
            return self._fail(GENERAL_EXCEPTION, "The session was already initialized.")
        self._initialized = True
        return self._ok()

    def LMSFinish(self, parameter: str) -> str:
        if parameter != "":
            return self._fail(INVALID_ARGUMENT, "LMSFinish expects an empty string.")
        if not self._initialized:
            return self._fail(NOT_INITIALIZED, "LMSFinish called before LMSInitialize.")
        self._accumulate_total_time()
        self._persist()
        self._initialized = False
        self._finished = True
        return self._ok()

    def LMSGetValue(self, element: str) -> str:
        if not self._initialized:
            self._fail(NOT_INITIALIZED, "LMSGetValue called outside an active session.")
            return ""
        if element in _WRITE_ONLY:
            self._fail(ELEMENT_WRITE_ONLY, f"{element} is write only.")
            return ""
        if element not in self._record:
            self._fail(NOT_IMPLEMENTED, f"{element} is not supported.")
            return ""
        self._ok()
        return self._record[element]

    def LMSSetValue(self, element: str, value: str) -> str:
        if not self._initialized:
            return self._fail(NOT_INITIALIZED, "LMSSetValue called outside an active session.")
        if element in _READ_ONLY:
            return self._fail(ELEMENT_READ_ONLY, f"{element} is read only.")
        if element not in _READ_WRITE and element not in _WRITE_ONLY:
            return self._fail(NOT_IMPLEMENTED, f"{element} is not supported.")
        value = str(value)
        problem = self._validate(element, value)
        if problem:
            return self._fail(INCORRECT_DATA_TYPE, problem)

        if element == "cmi.core.session_time":
            self._session_time = value
        elif element == "cmi.core.exit":
            self._exit = value
        else:
            self._record[element] = value
        return self._ok()

    def LMSCommit(self, parameter: str) -> str:
        if parameter != "":
            return self._fail(INVALID_ARGUMENT, "LMSCommit expects an empty string.")
        if not self._initialized:
            return self._fail(NOT_INITIALIZED, "LMSCommit called outside an active session.")
        if not self._persist():
            return self._fail(GENERAL_EXCEPTION, f"Could not write {self._store_path}.")
        return self._ok()

    def LMSGetLastError(self) -> str:
        return str(self._last_error)

    def LMSGetErrorString(self, error_code: str) -> str:
        try:
            return ERROR_STRINGS.get(int(error_code), "")
        except ValueError:
            return ""

    def LMSGetDiagnostic(self, error_code: str) -> str:
        if error_code in ("", str(self._last_error)):
            return self._diagnostic
        return self.LMSGetErrorString(error_code)

    # --- Inspection helpers ---

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_finished(self) -> bool:
        return self._finished

    def snapshot(self) -> dict[str, str]:
        """Copy of the learner record, including the write-only session fields."""
        record = dict(self._record)
        record["cmi.core.session_time"] = self._session_time
        record["cmi.core.exit"] = self._exit
        return record

    # --- Internals ---

    def _ok(self) -> str:
        self._last_error = NO_ERROR
        self._diagnostic = ""
        return SUCCESS_SENTINEL

    def _fail(self, code: int, diagnostic: str) -> str:
        self._last_error = code
        self._diagnostic = diagnostic
        return FAILURE_SENTINEL

    @staticmethod
    def _validate(element: str, value: str) -> str | None:
        if element.startswith("cmi.core.score."):
            if value == "":
                return None
            try:
                number = float(value)
            except ValueError:
                return f"{element} must be a number, got {value!r}."
            if not 0 <= number <= 100:
                return f"{element} must be between 0 and 100."
            return None
        if element == "cmi.core.lesson_status":
            if value not in {status.value for status in LessonStatus}:
                return f"{value!r} is not a lesson status."
            return None
        if element == "cmi.core.session_time":
            if parse_timespan(value) is None:
                return f"{value!r} is not a CMITimespan."
            return None
        if element == "cmi.core.exit":
            if value not in _EXIT_VALUES:
                return f"{value!r} is not an exit value."
            return None
        if element == "cmi.suspend_data" and len(value) > SUSPEND_DATA_LIMIT:
            return f"suspend_data is limited to {SUSPEND_DATA_LIMIT} characters."
        if element == "cmi.core.lesson_location" and len(value) > 255:
            return "lesson_location is limited to 255 characters."
        return None

    def _accumulate_total_time(self) -> None:
        added = parse_timespan(self._session_time) if self._session_time else None
        if added is None:
            return
        previous = parse_timespan(self._record["cmi.core.total_time"]) or 0.0
        self._record["cmi.core.total_time"] = format_timespan(previous + added)
        self._session_time = ""

    def _load_record(self) -> dict[str, str]:
        if self._store_path is None or not self._store_path.exists():
            return {}
        try:
            stored = json.loads(self._store_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable LMS record %s: %s", self._store_path, exc)
            return {}
        if not isinstance(stored, dict):
            logger.warning("Ignoring LMS record %s: expected a JSON object.", self._store_path)
            return {}
        return {key: str(value) for key, value in stored.items() if key in _PERSISTED}

    def _persist(self) -> bool:
        if self._store_path is None:
            return True
        payload = {key: self._record[key] for key in sorted(_PERSISTED)}
        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            self._store_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Could not persist LMS record to %s: %s", self._store_path, exc)
            return False
        return True


@dataclass(eq=False)
class BrowsingContext:
    """A window in the frame tree the content runs in."""

    API: LocalLmsRuntime | None = None
    parent: BrowsingContext | None = None
    opener: BrowsingContext | None = field(default=None, repr=False)


def launch_in_frame(runtime: LocalLmsRuntime | None) -> BrowsingContext:
    """Return the content window of an LMS frameset whose top window carries ``runtime``."""
    top = BrowsingContext(API=runtime)
    top.parent = top
    return BrowsingContext(parent=top)
