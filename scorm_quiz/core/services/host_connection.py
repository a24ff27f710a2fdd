"""Connection to the SCORM 1.2 API object provided by the hosting LMS.

The LMS exposes an object named ``API`` on one of the windows enclosing the
content. ``HostConnection`` finds it, owns its find -> initialize ->
read/write -> terminate lifecycle and turns the string results of the
protocol into booleans. Nothing here raises: without a host every operation
returns its "unavailable" value and the quiz runs in standalone mode.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from scorm_quiz.constants.scorm_constants import (
    GENERAL_EXCEPTION,
    MAX_DISCOVERY_HOPS,
    NO_ERROR,
    SUCCESS_SENTINEL,
)
from scorm_quiz.core.models import HostConnectionState

logger = logging.getLogger(__name__)


class LmsApi(Protocol):
    """The SCORM 1.2 runtime API as exposed by an LMS."""

    def LMSInitialize(self, parameter: str) -> str: ...

    def LMSFinish(self, parameter: str) -> str: ...

    def LMSGetValue(self, element: str) -> str: ...

    def LMSSetValue(self, element: str, value: str) -> str: ...

    def LMSCommit(self, parameter: str) -> str: ...

    def LMSGetLastError(self) -> str: ...

    def LMSGetErrorString(self, error_code: str) -> str: ...

    def LMSGetDiagnostic(self, error_code: str) -> str: ...


class HostWindow(Protocol):
    """A browsing context that may carry the API and link to its parent or opener."""

    API: LmsApi | None
    parent: HostWindow | None
    opener: HostWindow | None


def find_api(window: HostWindow | None, max_hops: int = MAX_DISCOVERY_HOPS) -> LmsApi | None:
    """Search ``window`` and its ancestors for the API object.

    The walk stops at a window without a parent, at a window that is its own
    parent (the top of a browser frame tree), or after ``max_hops`` parents.
    """
    hops = 0
    while window is not None:
        api = getattr(window, "API", None)
        if api is not None:
            return api
        parent = getattr(window, "parent", None)
        if parent is None or parent is window or hops >= max_hops:
            return None
        window = parent
        hops += 1
    return None


class HostConnection:
    """Typed, non-raising wrapper around the LMS API handle."""

    def __init__(self, max_hops: int = MAX_DISCOVERY_HOPS) -> None:
        self._max_hops = max_hops
        self._api: LmsApi | None = None
        self._state = HostConnectionState.NOT_SEARCHED

    @property
    def state(self) -> HostConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._api is not None

    @property
    def is_ready(self) -> bool:
        return self._state is HostConnectionState.INITIALIZED

    def discover(self, window: HostWindow | None) -> bool:
        """Locate the API on the window chain, falling back to the opener's chain."""
        if self._state is not HostConnectionState.NOT_SEARCHED:
            return self._api is not None

        api = find_api(window, self._max_hops)
        opener = getattr(window, "opener", None)
        if api is None and opener is not None:
            api = find_api(opener, self._max_hops)

        if api is None:
            self._state = HostConnectionState.NOT_FOUND
            logger.info("SCORM API not found.")
            return False

        self._api = api
        self._state = HostConnectionState.FOUND
        return True

    def initialize(self) -> bool:
        if self._state is HostConnectionState.INITIALIZED:
            return True
        if self._state is not HostConnectionState.FOUND:
            return False
        if self._call_succeeded("LMSInitialize", self._api.LMSInitialize, ""):
            self._state = HostConnectionState.INITIALIZED
            return True
        return False

    def get_field(self, name: str) -> str:
        if not self.is_ready:
            return ""
        value = self._invoke("LMSGetValue", self._api.LMSGetValue, name)
        return "" if value is None else str(value)

    def set_field(self, name: str, value: str) -> bool:
        if not self.is_ready:
            return False
        return self._call_succeeded("LMSSetValue", self._api.LMSSetValue, name, value)

    def commit(self) -> bool:
        if not self.is_ready:
            return False
        return self._call_succeeded("LMSCommit", self._api.LMSCommit, "")

    def terminate(self) -> bool:
        if not self.is_ready:
            return False
        if self._call_succeeded("LMSFinish", self._api.LMSFinish, ""):
            self._state = HostConnectionState.TERMINATED
            return True
        return False

    def last_error(self) -> int:
        if self._api is None:
            return NO_ERROR
        raw = self._invoke("LMSGetLastError", self._api.LMSGetLastError)
        if raw is None:
            return GENERAL_EXCEPTION
        try:
            return int(str(raw).strip() or NO_ERROR)
        except ValueError:
            logger.warning("LMS returned a non-numeric error code: %r", raw)
            return GENERAL_EXCEPTION

    def error_string(self, code: int) -> str:
        if self._api is None:
            return ""
        value = self._invoke("LMSGetErrorString", self._api.LMSGetErrorString, str(code))
        return "" if value is None else str(value)

    def diagnostic(self, code: int) -> str:
        if self._api is None:
            return ""
        value = self._invoke("LMSGetDiagnostic", self._api.LMSGetDiagnostic, str(code))
        return "" if value is None else str(value)

    def _invoke(self, name: str, method: Callable[..., Any], *args: str) -> Any:
        try:
            return method(*args)
        except Exception:
            logger.exception("LMS call %s%r raised", name, args)
            return None

    def _call_succeeded(self, name: str, method: Callable[..., Any], *args: str) -> bool:
        result = self._invoke(name, method, *args)
        if result == SUCCESS_SENTINEL:
            return True
        code = self.last_error()
        logger.warning(
            "LMS call %s%r failed (result=%r, error %s: %s)",
            name,
            args,
            result,
            code,
            self.error_string(code),
        )
        return False


def connect_to_host(window: HostWindow | None) -> HostConnection:
    """Discover and initialize the LMS connection for ``window``."""
    connection = HostConnection()
    if connection.discover(window) and connection.initialize():
        logger.info("SCORM connection initialized.")
    elif connection.is_connected:
        logger.warning("SCORM API found but initialization failed. Running in standalone mode.")
    else:
        logger.info("Running in standalone mode.")
    return connection
