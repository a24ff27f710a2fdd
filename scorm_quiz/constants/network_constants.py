"""Network configuration constants for the learner-facing server."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
STATE_POLL_INTERVAL_MS: int = 250
