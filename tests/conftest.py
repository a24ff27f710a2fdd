"""
Pytest configuration and shared fixtures for the quiz runtime tests.
"""

import pytest

from scorm_quiz.core.models import Question, QuestionOption
from scorm_quiz.core.services.host_connection import HostConnection
from scorm_quiz.lms.local_runtime import BrowsingContext


class FakeClock:
    """Manually advanced stand-in for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingLmsApi:
    """Fake LMS API that keeps fields in a dict and records every call."""

    def __init__(self, fields=None):
        self.fields = dict(fields or {})
        self.calls = []
        self.writes = []
        self.commits = 0
        self.fail_calls = set()
        self.raise_calls = set()
        self.last_error = "0"

    def _result(self, name):
        self.calls.append(name)
        if name in self.raise_calls:
            raise RuntimeError(f"{name} exploded")
        if name in self.fail_calls:
            self.last_error = "101"
            return "false"
        self.last_error = "0"
        return "true"

    def LMSInitialize(self, parameter):
        return self._result("LMSInitialize")

    def LMSFinish(self, parameter):
        return self._result("LMSFinish")

    def LMSGetValue(self, element):
        self._result("LMSGetValue")
        return self.fields.get(element, "")

    def LMSSetValue(self, element, value):
        result = self._result("LMSSetValue")
        self.writes.append((element, value))
        if result == "true":
            self.fields[element] = value
        return result

    def LMSCommit(self, parameter):
        result = self._result("LMSCommit")
        if result == "true":
            self.commits += 1
        return result

    def LMSGetLastError(self):
        return self.last_error

    def LMSGetErrorString(self, error_code):
        return "General exception" if error_code == "101" else "No error"

    def LMSGetDiagnostic(self, error_code):
        return f"diagnostic for {error_code}"

    def values_written(self, element):
        return [value for name, value in self.writes if name == element]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lms_api():
    return RecordingLmsApi()


@pytest.fixture
def connected_host(lms_api):
    """HostConnection that found ``lms_api`` on the parent window and initialized it."""
    top = BrowsingContext(API=lms_api)
    top.parent = top
    host = HostConnection()
    assert host.discover(BrowsingContext(parent=top))
    assert host.initialize()
    return host


@pytest.fixture
def standalone_host():
    host = HostConnection()
    host.discover(None)
    host.initialize()
    return host


def make_question(question_id, correct_option_index=0, images=None):
    images = images or [None, None, None, None]
    return Question(
        id=question_id,
        prompt=f"Question {question_id}?",
        options=tuple(
            QuestionOption(label=f"Q{question_id} option {letter}", image=image)
            for letter, image in zip("ABCD", images)
        ),
        correct_option_index=correct_option_index,
    )


@pytest.fixture
def four_questions():
    return [make_question(1, 0), make_question(2, 3), make_question(3, 1), make_question(4, 2)]


def correct_position(options):
    return next(i for i, option in enumerate(options) if option.is_correct)


def wrong_position(options):
    return next(i for i, option in enumerate(options) if not option.is_correct)
