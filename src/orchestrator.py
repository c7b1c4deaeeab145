"""
Quiz Service Orchestrator

Orchestrates the complete quiz lifecycle:
1. Adaptive quiz generation (history-aware)
2. Submission, AI evaluation and answer reconciliation
3. Retries of earlier quizzes
4. Cached hints
5. Filtered history and progress summaries

This is the main entry point for callers such as an HTTP layer or the demo UI.
One provider is resolved at construction and shared by every pipeline.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import logging
import uuid

from .agents.hint_generator import HintGenerator
from .agents.providers import LLMProvider, create_provider
from .agents.quiz_evaluator import QuizEvaluator, compute_percentage, reconcile_answers
from .agents.quiz_generator import HistorySignal, QuizGenerator
from .config import config
from .errors import AccessDeniedError, RecordNotFoundError
from .models.quiz import Hint, Question, Quiz, QuizSubmission
from .utils.persistence import QuizStore, filter_submissions
from .utils.progress import score_histogram, score_summary, subject_averages

logger = logging.getLogger(__name__)


class QuizOrchestrator:
    """
    Main orchestrator for the quiz service.

    Manages:
    - Quiz generation with adaptive difficulty
    - Submission evaluation and reconciliation
    - Hint caching
    - History browsing
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        store: Optional[QuizStore] = None,
        persist_dir: Optional[Path] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: LLM backend (built from configuration if None)
            store: Quiz store (a JSON store under persist_dir if None)
            persist_dir: Data directory for the default store
        """
        self.provider = provider or create_provider()
        self.store = store or QuizStore(persist_dir or config.paths.data_dir)

        self.generator = QuizGenerator(self.provider)
        self.evaluator = QuizEvaluator(self.provider)
        self.hint_generator = HintGenerator(self.provider)

    # ==================== Generation ====================

    def generate_quiz(
        self,
        user_id: str,
        grade: str,
        subject: str,
        num_questions: int,
        difficulty: Optional[str] = None,
    ) -> Quiz:
        """
        Generate and store a new quiz for a user.

        Args:
            user_id: Requesting user
            grade: Grade the quiz targets
            subject: Subject
            num_questions: Number of questions (1-50)
            difficulty: Requested difficulty (default from config)

        Returns:
            The stored Quiz

        Raises:
            ValueError: If inputs are invalid
            MalformedOutputError: If the model's output is unusable
        """
        difficulty = difficulty or config.assessment.default_difficulty
        self._validate_generation_request(grade, subject, num_questions, difficulty)

        history = self.recent_history(user_id)
        generated = self.generator.generate_quiz(
            grade=grade,
            subject=subject,
            num_questions=num_questions,
            difficulty=difficulty,
            history=history,
        )

        questions = [
            Question(
                question_id=f"q-{uuid.uuid4()}",
                question_number=index + 1,
                question_text=item.question_text,
                correct_answer=item.correct_answer,
                difficulty=item.difficulty or difficulty,
                options=list(item.options),
            )
            for index, item in enumerate(generated)
        ]

        quiz = Quiz(
            user_id=user_id,
            grade=grade,
            subject=subject,
            difficulty=difficulty,
            total_questions=num_questions,
            max_score=num_questions * config.assessment.points_per_question,
            questions=questions,
        )
        return self.store.save_quiz(quiz)

    def recent_history(self, user_id: str) -> List[HistorySignal]:
        """Project the user's most recent submissions into history signals."""
        signals = []
        for submission in self.store.list_submissions(
            user_id, limit=config.assessment.history_limit
        ):
            quiz = self.store.load_quiz(submission.quiz_id)
            if quiz is None:
                continue
            signals.append(
                HistorySignal(
                    subject=quiz.subject,
                    score=submission.percentage,
                    difficulty=quiz.difficulty,
                )
            )
        return signals

    def _validate_generation_request(
        self, grade: str, subject: str, num_questions: int, difficulty: str
    ) -> None:
        if not grade or not str(grade).strip():
            raise ValueError("Grade is required")
        if not subject or not str(subject).strip():
            raise ValueError("Subject is required")

        low, high = config.assessment.min_questions, config.assessment.max_questions
        if (
            isinstance(num_questions, bool)
            or not isinstance(num_questions, int)
            or not (low <= num_questions <= high)
        ):
            raise ValueError(f"Number of questions must be between {low} and {high}")

        if difficulty not in config.assessment.difficulty_levels:
            raise ValueError(
                f"Difficulty must be one of {config.assessment.difficulty_levels}, got {difficulty}"
            )

    # ==================== Submission ====================

    def submit_quiz(
        self,
        user_id: str,
        quiz_id: str,
        answers: Iterable[Dict[str, Any]],
    ) -> QuizSubmission:
        """
        Evaluate a user's answers and store the submission.

        Args:
            user_id: Submitting user
            quiz_id: Quiz being answered
            answers: ``{"question_id": ..., "answer": ...}`` items

        Returns:
            The stored QuizSubmission
        """
        quiz = self._owned_quiz(user_id, quiz_id)
        submission = self._evaluate(user_id, quiz, answers)

        quiz.score = submission.score
        self.store.save_quiz(quiz)
        return submission

    def retry_quiz(
        self,
        user_id: str,
        quiz_id: str,
        answers: Iterable[Dict[str, Any]],
    ) -> QuizSubmission:
        """Evaluate a new attempt at an earlier quiz; the quiz's score is left as-is."""
        quiz = self._owned_quiz(user_id, quiz_id)
        return self._evaluate(user_id, quiz, answers)

    def _evaluate(
        self,
        user_id: str,
        quiz: Quiz,
        answers: Iterable[Dict[str, Any]],
    ) -> QuizSubmission:
        ordered = quiz.ordered_questions()
        answer_map = {
            item.get("question_id"): str(item.get("answer") or "")
            for item in (answers or [])
        }

        evaluation = self.evaluator.evaluate_quiz(
            ordered,
            [answer_map.get(q.question_id, "") for q in ordered],
        )

        max_score = evaluation.max_score or quiz.max_score
        submission = QuizSubmission(
            quiz_id=quiz.quiz_id,
            user_id=user_id,
            score=evaluation.score,
            max_score=max_score,
            percentage=compute_percentage(evaluation.score, evaluation.max_score, quiz.max_score),
            improvements=list(evaluation.improvements),
            answers=reconcile_answers(ordered, answer_map, evaluation),
        )
        return self.store.save_submission(submission)

    # ==================== Lookups ====================

    def _owned_quiz(self, user_id: str, quiz_id: str) -> Quiz:
        quiz = self.store.load_quiz(quiz_id)
        if quiz is None:
            raise RecordNotFoundError("Quiz not found")
        if quiz.user_id != user_id:
            raise AccessDeniedError("Unauthorized")
        return quiz

    def get_quiz(self, user_id: str, quiz_id: str) -> Dict[str, Any]:
        """Learner-facing view of a quiz (no correct answers)."""
        quiz = self._owned_quiz(user_id, quiz_id)
        return {
            "quiz_id": quiz.quiz_id,
            "grade": quiz.grade,
            "subject": quiz.subject,
            "difficulty": quiz.difficulty,
            "total_questions": quiz.total_questions,
            "questions": [q.to_public_dict() for q in quiz.ordered_questions()],
        }

    def get_submission(self, user_id: str, submission_id: str) -> Dict[str, Any]:
        """Full detail of one submission, evaluations ordered by question number."""
        submission = self.store.load_submission(submission_id)
        if submission is None:
            raise RecordNotFoundError("Submission not found")
        if submission.user_id != user_id:
            raise AccessDeniedError("Unauthorized")

        quiz = self.store.load_quiz(submission.quiz_id)
        if quiz is None:
            raise RecordNotFoundError("Quiz not found")

        questions = {q.question_id: q for q in quiz.questions}
        evaluations = []
        for answer in submission.answers:
            question = questions.get(answer.question_id)
            evaluations.append(
                {
                    "question_id": answer.question_id,
                    "question_number": question.question_number if question else None,
                    "question_text": question.question_text if question else "",
                    "correct_answer": question.correct_answer if question else "",
                    "user_answer": answer.user_answer,
                    "is_correct": answer.is_correct,
                }
            )
        evaluations.sort(key=lambda e: e["question_number"] or 0)

        return {
            "submission_id": submission.submission_id,
            "quiz_id": quiz.quiz_id,
            "grade": quiz.grade,
            "subject": quiz.subject,
            "difficulty": quiz.difficulty,
            "created_at": submission.created_at,
            "score": submission.score,
            "max_score": submission.max_score,
            "percentage": submission.percentage,
            "total_questions": quiz.total_questions,
            "improvements": list(submission.improvements),
            "evaluations": evaluations,
        }

    # ==================== Hints ====================

    def get_hint(self, user_id: str, quiz_id: str, question_id: str) -> Hint:
        """
        Hint for a question, generated once and cached.

        Raises:
            RecordNotFoundError: If the quiz or question does not exist
            AccessDeniedError: If the quiz belongs to someone else
        """
        quiz = self._owned_quiz(user_id, quiz_id)
        question = quiz.find_question(question_id)
        if question is None:
            raise RecordNotFoundError("Question not found")

        hint = self.store.find_hint(question_id)
        if hint is not None:
            return hint

        hint_text = self.hint_generator.generate_hint(
            question.question_text, quiz.subject, quiz.grade
        )
        logger.debug("Generated hint for question %s", question_id)
        return self.store.save_hint(Hint(question_id=question_id, hint_text=hint_text))

    # ==================== History ====================

    def _filtered_submissions(
        self,
        user_id: str,
        grade: Optional[str] = None,
        subject: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        min_percentage: Optional[float] = None,
    ) -> tuple[List[QuizSubmission], Dict[str, Quiz]]:
        submissions = self.store.list_submissions(user_id)

        quizzes = {}
        for submission in submissions:
            if submission.quiz_id not in quizzes:
                quiz = self.store.load_quiz(submission.quiz_id)
                if quiz is not None:
                    quizzes[submission.quiz_id] = quiz

        kept = filter_submissions(
            submissions,
            quizzes,
            grade=grade,
            subject=subject,
            date_from=date_from,
            date_to=date_to,
            min_percentage=min_percentage,
        )
        return kept, quizzes

    def get_history(
        self,
        user_id: str,
        grade: Optional[str] = None,
        subject: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        min_percentage: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        A user's past attempts, newest first.

        Returns:
            ``{"count": n, "submissions": [...]}`` with one summary per attempt
        """
        submissions, quizzes = self._filtered_submissions(
            user_id, grade, subject, date_from, date_to, min_percentage
        )

        summaries = []
        for submission in submissions:
            quiz = quizzes[submission.quiz_id]
            summaries.append(
                {
                    "submission_id": submission.submission_id,
                    "quiz_id": submission.quiz_id,
                    "grade": quiz.grade,
                    "subject": quiz.subject,
                    "score": submission.score,
                    "max_score": submission.max_score,
                    "percentage": submission.percentage,
                    "improvements": list(submission.improvements),
                    "created_at": submission.created_at,
                    "total_questions": quiz.total_questions,
                    "correct_answers": submission.correct_answers,
                }
            )

        return {"count": len(summaries), "submissions": summaries}

    def get_history_summary(self, user_id: str, **filters) -> Dict[str, Any]:
        """Statistics over the (filtered) history: summary, histogram, per-subject mean."""
        submissions, quizzes = self._filtered_submissions(user_id, **filters)
        percentages = [s.percentage for s in submissions]

        return {
            "summary": score_summary(percentages),
            "histogram": score_histogram(percentages),
            "by_subject": subject_averages(
                (quizzes[s.quiz_id].subject, s.percentage) for s in submissions
            ),
        }
