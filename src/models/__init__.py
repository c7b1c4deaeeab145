"""
Data models for the quiz service.

This module contains the persisted records:
- Quiz / Question: generated quizzes with stable question numbering
- QuizSubmission: evaluated attempts with reconciled answers
- Hint: cached per-question hints
"""

from .quiz import Hint, Question, Quiz, QuizSubmission, ReconciledAnswer

__all__ = [
    "Quiz",
    "Question",
    "QuizSubmission",
    "Hint",
    "ReconciledAnswer",
]
