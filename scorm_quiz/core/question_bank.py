"""Loading of the question bank from a CSV file.

Expected header (image columns may be omitted or left blank)::

    question,optA,optB,optC,optD,imgA,imgB,imgC,imgD,correctIndex

``correctIndex`` is the zero-based position of the right answer among
``optA``..``optD``. Image cells hold paths relative to the CSV file.

Example row::

    "Which planet is largest?",Mars,Jupiter,Venus,Earth,,,,,1
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
import io
from pathlib import Path

from scorm_quiz.core.models import Question, QuestionOption


class QuestionBankError(Exception):
    """Raised when a question bank cannot be parsed."""


@dataclass(slots=True)
class LoadedBank:
    """Container for the source file and the questions read from it."""

    source_path: Path
    questions: list[Question]

    @property
    def media_root(self) -> Path:
        return self.source_path.parent


_OPTION_COLUMNS = ("optA", "optB", "optC", "optD")
_IMAGE_COLUMNS = ("imgA", "imgB", "imgC", "imgD")
_REQUIRED_COLUMNS = ("question", *_OPTION_COLUMNS, "correctIndex")


def load_bank_from_file(file_path: Path) -> LoadedBank:
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise QuestionBankError(f"Cannot read question bank {file_path}: {exc}") from exc
    questions = parse_bank_text(text)
    return LoadedBank(source_path=file_path.resolve(), questions=questions)


def parse_bank_text(text: str) -> list[Question]:
    reader = csv.DictReader(io.StringIO(text))
    header = reader.fieldnames or []
    missing = [column for column in _REQUIRED_COLUMNS if column not in header]
    if missing:
        raise QuestionBankError(f"Question bank is missing columns: {', '.join(missing)}.")

    questions: list[Question] = []
    for row in reader:
        line_number = reader.line_num
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        questions.append(_parse_row(row, question_id=len(questions) + 1, line_number=line_number))

    if not questions:
        raise QuestionBankError("Question bank does not contain any questions.")
    return questions


def _parse_row(row: dict[str, str | None], question_id: int, line_number: int) -> Question:
    prompt = (row.get("question") or "").strip()
    if not prompt:
        raise QuestionBankError(f"Line {line_number}: question text cannot be empty.")

    labels = [(row.get(column) or "").strip() for column in _OPTION_COLUMNS]
    if any(not label for label in labels):
        raise QuestionBankError(f"Line {line_number}: option text cannot be empty.")
    images = [(row.get(column) or "").strip() or None for column in _IMAGE_COLUMNS]

    raw_index = (row.get("correctIndex") or "").strip()
    try:
        correct_index = int(float(raw_index))
    except (ValueError, OverflowError) as exc:
        raise QuestionBankError(
            f"Line {line_number}: correctIndex must be a number, got {raw_index!r}."
        ) from exc
    if not 0 <= correct_index < len(_OPTION_COLUMNS):
        raise QuestionBankError(f"Line {line_number}: correctIndex must be between 0 and 3.")

    return Question(
        id=question_id,
        prompt=prompt,
        options=tuple(QuestionOption(label=label, image=image) for label, image in zip(labels, images)),
        correct_option_index=correct_index,
    )
