"""
Quiz records - the persisted shape of quizzes, submissions and hints.

These records flow between the orchestrator and the quiz store. AI output is
converted into them by the orchestrator; nothing here talks to a backend.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Question:
    """
    A stored quiz question.

    Attributes:
        question_id: Unique identifier
        question_number: 1-based position in the quiz (stable ordering key)
        question_text: The question text
        correct_answer: Correct answer text
        difficulty: Difficulty level
        options: Answer options
    """
    question_id: str
    question_number: int
    question_text: str
    correct_answer: str
    difficulty: str
    options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "question_id": self.question_id,
            "question_number": self.question_number,
            "question_text": self.question_text,
            "correct_answer": self.correct_answer,
            "difficulty": self.difficulty,
            "options": list(self.options),
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Learner-facing view (no correct answer)."""
        return {
            "question_id": self.question_id,
            "question_number": self.question_number,
            "question_text": self.question_text,
            "options": list(self.options),
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            question_id=data["question_id"],
            question_number=int(data["question_number"]),
            question_text=data.get("question_text", ""),
            correct_answer=data.get("correct_answer", ""),
            difficulty=data.get("difficulty", ""),
            options=list(data.get("options") or []),
        )


@dataclass
class Quiz:
    """
    A generated quiz owned by one user.

    Attributes:
        quiz_id: Unique identifier
        user_id: Owner
        grade: Grade the quiz targets
        subject: Subject
        difficulty: Requested difficulty
        total_questions: Number of questions requested
        max_score: Stored maximum score
        questions: Stored questions
        score: Score of the latest (non-retry) submission
        created_at: ISO 8601 timestamp
    """
    user_id: str
    grade: str
    subject: str
    difficulty: str
    total_questions: int
    max_score: int
    questions: List[Question] = field(default_factory=list)
    score: Optional[float] = None
    quiz_id: str = field(default_factory=lambda: f"quiz-{uuid.uuid4()}")
    created_at: str = field(default_factory=_now)

    def ordered_questions(self) -> List[Question]:
        """Questions sorted by question number."""
        return sorted(self.questions, key=lambda q: q.question_number)

    def find_question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.question_id == question_id), None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "grade": self.grade,
            "subject": self.subject,
            "difficulty": self.difficulty,
            "total_questions": self.total_questions,
            "max_score": self.max_score,
            "score": self.score,
            "created_at": self.created_at,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quiz":
        return cls(
            quiz_id=data["quiz_id"],
            user_id=data["user_id"],
            grade=data["grade"],
            subject=data["subject"],
            difficulty=data.get("difficulty", "medium"),
            total_questions=int(data["total_questions"]),
            max_score=int(data["max_score"]),
            score=data.get("score"),
            created_at=data.get("created_at", ""),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
        )


@dataclass
class ReconciledAnswer:
    """
    Final stored answer and correctness for one question.

    Attributes:
        question_id: Question identifier
        user_answer: Answer kept for storage
        is_correct: Final correctness
    """
    question_id: str
    user_answer: str
    is_correct: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "user_answer": self.user_answer,
            "is_correct": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconciledAnswer":
        return cls(
            question_id=data["question_id"],
            user_answer=data.get("user_answer", ""),
            is_correct=bool(data.get("is_correct", False)),
        )


@dataclass
class QuizSubmission:
    """
    One evaluated attempt at a quiz.

    Attributes:
        submission_id: Unique identifier
        quiz_id: Quiz attempted
        user_id: Learner
        score: Score awarded
        max_score: Maximum score used for the percentage
        percentage: Locally computed percentage
        improvements: Suggestions from the evaluator
        answers: Reconciled answer per question, in question order
        created_at: ISO 8601 timestamp
    """
    quiz_id: str
    user_id: str
    score: float
    max_score: float
    percentage: float
    improvements: List[str] = field(default_factory=list)
    answers: List[ReconciledAnswer] = field(default_factory=list)
    submission_id: str = field(default_factory=lambda: f"sub-{uuid.uuid4()}")
    created_at: str = field(default_factory=_now)

    @property
    def correct_answers(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "submission_id": self.submission_id,
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "improvements": list(self.improvements),
            "answers": [answer.to_dict() for answer in self.answers],
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizSubmission":
        return cls(
            submission_id=data["submission_id"],
            quiz_id=data["quiz_id"],
            user_id=data["user_id"],
            score=data["score"],
            max_score=data["max_score"],
            percentage=data["percentage"],
            improvements=list(data.get("improvements") or []),
            answers=[ReconciledAnswer.from_dict(a) for a in data.get("answers", [])],
            created_at=data.get("created_at", ""),
        )


@dataclass
class Hint:
    """A cached hint for one question."""
    question_id: str
    hint_text: str
    hint_id: str = field(default_factory=lambda: f"hint-{uuid.uuid4()}")
    created_at: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hint_id": self.hint_id,
            "question_id": self.question_id,
            "hint_text": self.hint_text,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Hint":
        return cls(
            hint_id=data["hint_id"],
            question_id=data["question_id"],
            hint_text=data["hint_text"],
            created_at=data.get("created_at", ""),
        )
