"""
AI agents for quiz generation and evaluation.

This module contains the LLM-backed pieces:
- Provider adapter (one ``ask`` contract over OpenAI, Groq and Gemini)
- Quiz generation (adaptive to learner history)
- Quiz evaluation (with local reconciliation of AI judgements)
- Hint generation

Note: persisted quiz records are in src/models (pure data, not agents)
"""

from .providers import (
    LLMProvider,
    ChatCompletionProvider,
    GeminiProvider,
    RetryPolicy,
    create_provider,
)
from .quiz_generator import (
    QuizGenerator,
    GeneratedQuestion,
    HistorySignal,
)
from .quiz_evaluator import (
    QuizEvaluator,
    EvaluationItem,
    EvaluationResult,
    ReconciledAnswer,
    reconcile_answers,
    compute_percentage,
)
from .hint_generator import HintGenerator

__all__ = [
    # Providers
    "LLMProvider",
    "ChatCompletionProvider",
    "GeminiProvider",
    "RetryPolicy",
    "create_provider",
    # Generation
    "QuizGenerator",
    "GeneratedQuestion",
    "HistorySignal",
    # Evaluation
    "QuizEvaluator",
    "EvaluationItem",
    "EvaluationResult",
    "ReconciledAnswer",
    "reconcile_answers",
    "compute_percentage",
    # Hints
    "HintGenerator",
]
