"""
Quiz Generator Agent - Creates multiple-choice quizzes with an LLM.

Adapts difficulty to a learner's recent results by handing their history to the
model in the prompt; no local difficulty rules are applied.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.prompts import PromptTemplate

from ..errors import NoQuestionsGeneratedError
from ..utils.json_extraction import extract_json
from .providers import LLMProvider

logger = logging.getLogger(__name__)


# Type aliases
DifficultyLevel = str  # "easy", "medium", "hard"


@dataclass(frozen=True)
class GeneratedQuestion:
    """
    A single AI-generated multiple-choice question.

    Attributes:
        question_text: The question text
        options: Answer options (four expected)
        correct_answer: Text of the correct option
        difficulty: Difficulty tag reported by the model (may be empty)
    """
    question_text: str
    options: List[str] = field(default_factory=list)
    correct_answer: str = ""
    difficulty: DifficultyLevel = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedQuestion":
        """Build from the model's camelCase JSON without rejecting partial items."""
        if not isinstance(data, dict):
            data = {}
        options = data.get("options")
        return cls(
            question_text=str(data.get("questionText") or ""),
            options=[str(opt) for opt in options] if isinstance(options, list) else [],
            correct_answer=str(data.get("correctAnswer") or ""),
            difficulty=str(data.get("difficulty") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase shape used on the wire."""
        return {
            "questionText": self.question_text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class HistorySignal:
    """
    Compact projection of one past attempt, used only as prompt input.

    Attributes:
        subject: Subject of the past quiz
        score: Percentage achieved (0-100)
        difficulty: Difficulty of the past quiz
    """
    subject: str
    score: float
    difficulty: DifficultyLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "score": self.score,
            "difficulty": self.difficulty,
        }


class QuizGenerator:
    """
    Generates multiple-choice quizzes using a configured LLM provider.

    Features:
    - Deterministic system prompt with an example schema
    - Adaptive user prompt when the learner has past results
    - Strict JSON extraction; an empty quiz is a hard failure
    """

    def __init__(self, provider: LLMProvider):
        """
        Initialize quiz generator.

        Args:
            provider: Backend used for generation
        """
        self.provider = provider

        self.system_prompt = PromptTemplate(
            input_variables=["num_questions", "grade", "subject"],
            template="""You are an expert quiz generator.
Generate exactly {num_questions} MCQs for Grade {grade} {subject}.

Rules:
- 4 options (A, B, C, D)
- Include "correctAnswer"
- Include "difficulty": "easy" | "medium" | "hard"
- MUST RETURN STRICT JSON ONLY.

Example:
{{
  "questions": [
    {{
      "questionText": "",
      "options": ["A", "B", "C", "D"],
      "correctAnswer": "A",
      "difficulty": "easy"
    }}
  ]
}}""",
        )

        self.adaptive_prompt = PromptTemplate(
            input_variables=["history", "difficulty"],
            template="""User's past performance: {history}.
Requested difficulty: {difficulty}.
Adapt difficulty.
Return ONLY JSON.""",
        )

        self.default_prompt = PromptTemplate(
            input_variables=["difficulty"],
            template="""Generate high-quality questions.
Requested difficulty: {difficulty}.
Return ONLY JSON.""",
        )

    def build_prompts(
        self,
        grade: str,
        subject: str,
        num_questions: int,
        difficulty: DifficultyLevel = "medium",
        history: Optional[Sequence[HistorySignal]] = None,
    ) -> tuple[str, str]:
        """Build the (system, user) prompt pair for one generation request."""
        system = self.system_prompt.format(
            num_questions=num_questions,
            grade=grade,
            subject=subject,
        )

        if history:
            user = self.adaptive_prompt.format(
                history=json.dumps([signal.to_dict() for signal in history]),
                difficulty=difficulty,
            )
        else:
            user = self.default_prompt.format(difficulty=difficulty)

        return system, user

    def generate_quiz(
        self,
        grade: str,
        subject: str,
        num_questions: int,
        difficulty: DifficultyLevel = "medium",
        history: Optional[Sequence[HistorySignal]] = None,
    ) -> List[GeneratedQuestion]:
        """
        Generate a quiz.

        Args:
            grade: Learner's grade
            subject: Quiz subject
            num_questions: Number of questions requested (1-50)
            difficulty: Requested difficulty hint
            history: Learner's recent results, newest first

        Returns:
            Questions in the order the model returned them

        Raises:
            MalformedOutputError: If the response is not JSON
            NoQuestionsGeneratedError: If the response holds no questions
        """
        system, user = self.build_prompts(grade, subject, num_questions, difficulty, history)

        raw = self.provider.ask(system, user, wants_json=True)
        parsed = extract_json(raw)

        items = parsed.get("questions") if isinstance(parsed, dict) else None
        if not isinstance(items, list) or not items:
            raise NoQuestionsGeneratedError("No quiz questions generated")

        questions = [GeneratedQuestion.from_dict(item) for item in items]

        if len(questions) != num_questions:
            logger.info(
                "Requested %d questions for %s, model returned %d",
                num_questions,
                subject,
                len(questions),
            )

        return questions
