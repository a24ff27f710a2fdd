"""Static metadata describing ScormQuiz."""

APP_NAME = "ScormQuiz"
APP_VERSION = "0.1"
