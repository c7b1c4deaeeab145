"""
Quiz persistence with validation.

JSON-file store for quizzes, submissions and hints. Records are validated
against their JSON Schemas before they are written.
"""

from __future__ import annotations

import json
import re
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.quiz import Hint, Quiz, QuizSubmission
from .validation import validate_hint, validate_quiz, validate_submission

logger = logging.getLogger(__name__)

# Record ids are one path component: a prefix and uuid-style characters
RECORD_ID_CHARS = re.compile(r"^[A-Za-z0-9_-]+$")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive datetimes are taken to be UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return _as_utc(datetime.fromisoformat(value))
    except (TypeError, ValueError):
        return None


class QuizStore:
    """
    Handles persistence of quizzes, submissions and hints.

    Features:
    - Validate records against their schemas before saving
    - One JSON file per record under quizzes/, submissions/ and hints/
    - Load by ID, list a user's submissions, look up the hint for a question
    """

    def __init__(self, data_dir: Path | str = None):
        """
        Initialize the store.

        Args:
            data_dir: Root directory for records (default: data/)
        """
        self.data_dir = Path(data_dir) if data_dir else Path("data")
        self.quizzes_dir = self.data_dir / "quizzes"
        self.submissions_dir = self.data_dir / "submissions"
        self.hints_dir = self.data_dir / "hints"

        for directory in (self.quizzes_dir, self.submissions_dir, self.hints_dir):
            directory.mkdir(parents=True, exist_ok=True)

    # ==================== Low-level IO ====================

    def _write(self, filepath: Path, data: Dict[str, Any]) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _record_path(self, directory: Path, record_id: Any, prefix: str) -> Optional[Path]:
        """File for ``record_id`` under ``directory``; None for ids that cannot name one."""
        if (
            not isinstance(record_id, str)
            or not record_id.startswith(prefix)
            or not RECORD_ID_CHARS.match(record_id)
        ):
            logger.debug("Rejected record id %r for %s", record_id, directory.name)
            return None
        return directory / f"{record_id}.json"

    def _read(self, filepath: Optional[Path]) -> Optional[Dict[str, Any]]:
        if filepath is None or not filepath.exists():
            return None
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _read_all(self, directory: Path) -> List[Dict[str, Any]]:
        records = []
        for filepath in directory.glob("*.json"):
            try:
                records.append(self._read(filepath))
            except json.JSONDecodeError as e:
                logger.warning("Skipping unreadable record %s: %s", filepath, e)
        return records

    # ==================== Quizzes ====================

    def save_quiz(self, quiz: Quiz) -> Quiz:
        """
        Validate and write a quiz.

        Raises:
            ValueError: If the quiz fails validation
        """
        result = validate_quiz(quiz.to_dict())
        if not result:
            raise ValueError(f"Invalid quiz {quiz.quiz_id}: {result.errors}")
        self._write(self.quizzes_dir / f"{quiz.quiz_id}.json", result.data)
        return quiz

    def load_quiz(self, quiz_id: str) -> Optional[Quiz]:
        data = self._read(self._record_path(self.quizzes_dir, quiz_id, "quiz-"))
        return Quiz.from_dict(data) if data else None

    # ==================== Submissions ====================

    def save_submission(self, submission: QuizSubmission) -> QuizSubmission:
        """
        Validate and write a submission.

        Raises:
            ValueError: If the submission fails validation
        """
        result = validate_submission(submission.to_dict())
        if not result:
            raise ValueError(
                f"Invalid submission {submission.submission_id}: {result.errors}"
            )
        self._write(self.submissions_dir / f"{submission.submission_id}.json", result.data)
        return submission

    def load_submission(self, submission_id: str) -> Optional[QuizSubmission]:
        data = self._read(self._record_path(self.submissions_dir, submission_id, "sub-"))
        return QuizSubmission.from_dict(data) if data else None

    def list_submissions(
        self,
        user_id: str,
        limit: Optional[int] = None,
    ) -> List[QuizSubmission]:
        """
        List a user's submissions.

        Args:
            user_id: Learner
            limit: Maximum number to return

        Returns:
            Submissions sorted by creation time (newest first)
        """
        submissions = [
            QuizSubmission.from_dict(data)
            for data in self._read_all(self.submissions_dir)
            if data.get("user_id") == user_id
        ]
        submissions.sort(key=lambda s: s.created_at, reverse=True)

        if limit:
            return submissions[:limit]
        return submissions

    # ==================== Hints ====================

    def save_hint(self, hint: Hint) -> Hint:
        result = validate_hint(hint.to_dict())
        if not result:
            raise ValueError(f"Invalid hint {hint.hint_id}: {result.errors}")
        filepath = self._record_path(self.hints_dir, hint.question_id, "q-")
        if filepath is None:
            raise ValueError(f"Invalid question id for hint: {hint.question_id!r}")
        self._write(filepath, result.data)
        return hint

    def find_hint(self, question_id: str) -> Optional[Hint]:
        """Cached hint for a question, if one was generated before."""
        data = self._read(self._record_path(self.hints_dir, question_id, "q-"))
        return Hint.from_dict(data) if data else None


def filter_submissions(
    submissions: List[QuizSubmission],
    quizzes: Dict[str, Quiz],
    grade: Optional[str] = None,
    subject: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    min_percentage: Optional[float] = None,
) -> List[QuizSubmission]:
    """
    Apply history filters.

    Args:
        submissions: Candidate submissions
        quizzes: Quizzes keyed by id (for grade/subject)
        grade: Keep only quizzes for this grade
        subject: Keep only quizzes for this subject
        date_from: Keep submissions created at or after this time
        date_to: Keep submissions created at or before this time
        min_percentage: Keep submissions scoring at least this percentage

    Returns:
        Matching submissions, order preserved
    """
    date_from = _as_utc(date_from)
    date_to = _as_utc(date_to)

    kept = []
    for submission in submissions:
        quiz = quizzes.get(submission.quiz_id)
        if quiz is None:
            continue
        if grade and quiz.grade != grade:
            continue
        if subject and quiz.subject != subject:
            continue

        created = _parse_timestamp(submission.created_at)
        if date_from and (created is None or created < date_from):
            continue
        if date_to and (created is None or created > date_to):
            continue

        if min_percentage is not None and submission.percentage < min_percentage:
            continue
        kept.append(submission)

    return kept
