"""Application entry point for ScormQuiz."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from scorm_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from scorm_quiz.constants.quiz_constants import (
    DEFAULT_PASSING_PERCENTAGE,
    FEEDBACK_DELAY_SECONDS,
    SAMPLE_BANK_PATH,
)
from scorm_quiz.core.models import SessionSettings
from scorm_quiz.core.question_bank import QuestionBankError, load_bank_from_file
from scorm_quiz.core.services.host_connection import connect_to_host
from scorm_quiz.core.services.quiz_engine import QuizEngine
from scorm_quiz.core.session_controller import SessionController
from scorm_quiz.lms.local_runtime import LocalLmsRuntime, launch_in_frame
from scorm_quiz.server.api_server import run_api_server
from scorm_quiz.utils.logging_config import configure_logging

_DEFAULT_BANK = Path(__file__).resolve().parent / SAMPLE_BANK_PATH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a resumable quiz against a SCORM 1.2 LMS.")
    parser.add_argument("--bank", type=Path, default=_DEFAULT_BANK, help="CSV question bank")
    parser.add_argument(
        "--lms-store",
        type=Path,
        default=Path(".scorm_quiz_lms.json"),
        help="JSON file backing the local LMS record",
    )
    parser.add_argument(
        "--standalone",
        action="store_true",
        help="run without any LMS (no progress is kept between launches)",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--passing-score", type=int, default=DEFAULT_PASSING_PERCENTAGE)
    parser.add_argument("--feedback-delay", type=float, default=FEEDBACK_DELAY_SECONDS)
    parser.add_argument("--seed", type=int, default=None, help="seed for option shuffling")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Load the bank, connect to the LMS, and serve the learner page."""
    args = build_parser().parse_args(argv)
    logger = configure_logging(args.log_level.upper())
    logger.info("Starting ScormQuiz…")

    try:
        bank = load_bank_from_file(args.bank)
    except QuestionBankError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    logger.info("Loaded %d questions from %s", len(bank.questions), bank.source_path)

    runtime = None if args.standalone else LocalLmsRuntime(store_path=args.lms_store)
    host = connect_to_host(launch_in_frame(runtime))

    engine = QuizEngine()
    engine.load_bank(bank.questions)
    engine.set_shuffle_seed(args.seed)
    settings = SessionSettings(
        passing_percentage=args.passing_score,
        feedback_delay_seconds=args.feedback_delay,
    )
    controller = SessionController(engine, host, settings=settings)
    controller.start()

    run_api_server(
        controller,
        host=args.host,
        port=args.port,
        media_root=bank.media_root,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
