"""SCORM 1.2 protocol constants shared by the host client and the local runtime."""

SUCCESS_SENTINEL: str = "true"
FAILURE_SENTINEL: str = "false"

# Upper bound on window hops while searching for the API object.
MAX_DISCOVERY_HOPS: int = 500

SUSPEND_DATA_LIMIT: int = 4096

FIELD_SCORE_RAW: str = "cmi.core.score.raw"
FIELD_SCORE_MIN: str = "cmi.core.score.min"
FIELD_SCORE_MAX: str = "cmi.core.score.max"
FIELD_LESSON_STATUS: str = "cmi.core.lesson_status"
FIELD_SESSION_TIME: str = "cmi.core.session_time"
FIELD_SUSPEND_DATA: str = "cmi.suspend_data"

SCORE_MIN: int = 0
SCORE_MAX: int = 100

NO_ERROR: int = 0
GENERAL_EXCEPTION: int = 101
INVALID_ARGUMENT: int = 201
NOT_INITIALIZED: int = 301
NOT_IMPLEMENTED: int = 401
ELEMENT_READ_ONLY: int = 403
ELEMENT_WRITE_ONLY: int = 404
INCORRECT_DATA_TYPE: int = 405

ERROR_STRINGS: dict[int, str] = {
    NO_ERROR: "No error",
    GENERAL_EXCEPTION: "General exception",
    INVALID_ARGUMENT: "Invalid argument error",
    NOT_INITIALIZED: "Not initialized",
    NOT_IMPLEMENTED: "Not implemented error",
    ELEMENT_READ_ONLY: "Element is read only",
    ELEMENT_WRITE_ONLY: "Element is write only",
    INCORRECT_DATA_TYPE: "Incorrect data type",
}
