"""
Utility modules for AIQuizzer.

This module contains utility functions:
- json_extraction: Pull JSON out of free-form model output
- validation: JSON Schema validation of persisted records
- progress: Analytics over quiz history
- persistence: JSON-file quiz store
"""

from .json_extraction import extract_json
from .validation import (
    SchemaValidator,
    QuizValidator,
    SubmissionValidator,
    validate_quiz,
    validate_submission,
    validate_hint,
)
from .progress import (
    score_histogram,
    score_summary,
    subject_averages,
)
from .persistence import (
    QuizStore,
    filter_submissions,
)

__all__ = [
    # JSON extraction
    "extract_json",
    # Validation
    "SchemaValidator",
    "QuizValidator",
    "SubmissionValidator",
    "validate_quiz",
    "validate_submission",
    "validate_hint",
    # Progress analytics
    "score_histogram",
    "score_summary",
    "subject_averages",
    # Persistence
    "QuizStore",
    "filter_submissions",
]
