"""Quiz-related constants shared across the engine, controller and server."""

OPTIONS_PER_QUESTION: int = 4
DEFAULT_PASSING_PERCENTAGE: int = 80
FEEDBACK_DELAY_SECONDS: float = 1.5
SAMPLE_BANK_PATH: str = "scorm_quiz/data/sample_quiz.csv"
