"""
Schema validation utilities for AIQuizzer.

Validates persisted quiz records against JSON Schemas before they are written,
with readable error messages.

Production features:
- Format validation (datetime)
- Unique question ids and contiguous question numbering
- Submission answers must not repeat a question
"""

from copy import deepcopy
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError


QUESTION_SCHEMA = {
    "type": "object",
    "required": [
        "question_id",
        "question_number",
        "question_text",
        "correct_answer",
        "difficulty",
        "options",
    ],
    "properties": {
        "question_id": {"type": "string", "pattern": "^q-[A-Za-z0-9_-]+$"},
        "question_number": {"type": "integer", "minimum": 1},
        "question_text": {"type": "string"},
        "correct_answer": {"type": "string"},
        "difficulty": {"type": "string"},
        "options": {"type": "array", "items": {"type": "string"}},
    },
}

QUIZ_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Quiz",
    "type": "object",
    "required": [
        "quiz_id",
        "user_id",
        "grade",
        "subject",
        "difficulty",
        "total_questions",
        "max_score",
        "questions",
        "created_at",
    ],
    "properties": {
        "quiz_id": {"type": "string", "pattern": "^quiz-[A-Za-z0-9_-]+$"},
        "user_id": {"type": "string", "minLength": 1},
        "grade": {"type": "string", "minLength": 1},
        "subject": {"type": "string", "minLength": 1},
        "difficulty": {"type": "string", "enum": ["easy", "medium", "hard"]},
        "total_questions": {"type": "integer", "minimum": 1, "maximum": 50},
        "max_score": {"type": "integer", "minimum": 1},
        "score": {"type": ["number", "null"]},
        "created_at": {"type": "string", "format": "date-time"},
        "questions": {"type": "array", "minItems": 1, "items": QUESTION_SCHEMA},
    },
}

SUBMISSION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "QuizSubmission",
    "type": "object",
    "required": [
        "submission_id",
        "quiz_id",
        "user_id",
        "score",
        "max_score",
        "percentage",
        "improvements",
        "answers",
        "created_at",
    ],
    "properties": {
        "submission_id": {"type": "string", "pattern": "^sub-[A-Za-z0-9_-]+$"},
        "quiz_id": {"type": "string", "pattern": "^quiz-[A-Za-z0-9_-]+$"},
        "user_id": {"type": "string", "minLength": 1},
        "score": {"type": "number"},
        "max_score": {"type": "number"},
        "percentage": {"type": "number"},
        "improvements": {"type": "array", "items": {"type": "string"}},
        "created_at": {"type": "string", "format": "date-time"},
        "answers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["question_id", "user_answer", "is_correct"],
                "properties": {
                    "question_id": {"type": "string"},
                    "user_answer": {"type": "string"},
                    "is_correct": {"type": "boolean"},
                },
            },
        },
    },
}

HINT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Hint",
    "type": "object",
    "required": ["hint_id", "question_id", "hint_text", "created_at"],
    "properties": {
        "hint_id": {"type": "string", "pattern": "^hint-[A-Za-z0-9_-]+$"},
        "question_id": {"type": "string", "pattern": "^q-[A-Za-z0-9_-]+$"},
        "hint_text": {"type": "string"},
        "created_at": {"type": "string", "format": "date-time"},
    },
}


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (a deep copy of the input)
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            return "✓ Validation passed"
        return f"✗ Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator.

    Usage:
        validator = SchemaValidator(QUIZ_SCHEMA)
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema: dict):
        """
        Initialize validator with a schema.

        Args:
            schema: JSON Schema (draft-07) as a dict
        """
        self.schema = schema
        # Use FormatChecker to validate datetime and friends
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        data = deepcopy(data)
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]
        return ValidationResult(valid=not errors, errors=errors, data=data)

    def _format_error(self, error: ValidationError) -> str:
        """
        Convert ValidationError to human-readable message with details.

        Args:
            error: jsonschema ValidationError

        Returns:
            Formatted error message with validator and schema path
        """
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )


class QuizValidator(SchemaValidator):
    """Quiz schema plus numbering and id uniqueness checks."""

    def __init__(self):
        super().__init__(QUIZ_SCHEMA)

    def validate(self, data: dict) -> ValidationResult:
        result = super().validate(data)
        if not result.valid:
            return result

        questions = result.data["questions"]
        errors = []

        ids = [q["question_id"] for q in questions]
        duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
        if duplicates:
            errors.append(f"Duplicate question ids: {duplicates}")

        numbers = sorted(q["question_number"] for q in questions)
        if numbers != list(range(1, len(questions) + 1)):
            errors.append(
                f"Question numbers must run 1..{len(questions)} without gaps, got {numbers}"
            )

        return ValidationResult(valid=not errors, errors=errors, data=result.data)


class SubmissionValidator(SchemaValidator):
    """Submission schema plus one-answer-per-question check."""

    def __init__(self):
        super().__init__(SUBMISSION_SCHEMA)

    def validate(self, data: dict) -> ValidationResult:
        result = super().validate(data)
        if not result.valid:
            return result

        ids = [a["question_id"] for a in result.data["answers"]]
        duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
        errors = [f"Multiple answers for questions: {duplicates}"] if duplicates else []

        return ValidationResult(valid=not errors, errors=errors, data=result.data)


_validators: dict[str, Optional[SchemaValidator]] = {
    "quiz": None,
    "submission": None,
    "hint": None,
}


def _get_validator(kind: str) -> SchemaValidator:
    if _validators[kind] is None:
        _validators[kind] = {
            "quiz": QuizValidator,
            "submission": SubmissionValidator,
            "hint": lambda: SchemaValidator(HINT_SCHEMA),
        }[kind]()
    return _validators[kind]


# Convenience functions for quick validation
def validate_quiz(data: dict) -> ValidationResult:
    """
    Quick validation of a quiz record.

    Example:
        result = validate_quiz(quiz.to_dict())
        if not result:
            print("Errors:", result.errors)
    """
    return _get_validator("quiz").validate(data)


def validate_submission(data: dict) -> ValidationResult:
    """Quick validation of a submission record."""
    return _get_validator("submission").validate(data)


def validate_hint(data: dict) -> ValidationResult:
    """Quick validation of a hint record."""
    return _get_validator("hint").validate(data)
