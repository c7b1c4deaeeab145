"""
Quiz Evaluator Agent - LLM-based scoring of a submitted quiz.

The model scores the whole quiz in one call. Its per-question judgements are
then reconciled with what the learner actually submitted, because models omit
fields, return the wrong shapes or echo answers inaccurately.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from langchain_core.prompts import PromptTemplate

from ..errors import MalformedOutputError
from ..models.quiz import ReconciledAnswer
from ..utils.json_extraction import extract_json
from .providers import LLMProvider


def _field(question: Any, snake: str, camel: str) -> str:
    """Read a question attribute from a record or a camel/snake-case dict."""
    if isinstance(question, Mapping):
        value = question.get(camel, question.get(snake))
    else:
        value = getattr(question, snake, None)
    return "" if value is None else str(value)


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@dataclass(frozen=True)
class EvaluationItem:
    """
    The model's judgement of one question.

    Attributes:
        question_text: Question text echoed by the model
        correct_answer: Correct answer echoed by the model
        user_answer: Learner answer echoed by the model
        is_correct: Correctness, or None when the model gave no boolean
        explanation: Free-text explanation
    """
    question_text: str = ""
    correct_answer: str = ""
    user_answer: str = ""
    is_correct: Optional[bool] = None
    explanation: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "EvaluationItem":
        if not isinstance(data, dict):
            return cls()
        is_correct = data.get("isCorrect")
        return cls(
            question_text=str(data.get("questionText") or ""),
            correct_answer=str(data.get("correctAnswer") or ""),
            user_answer=str(data.get("userAnswer") or ""),
            is_correct=is_correct if isinstance(is_correct, bool) else None,
            explanation=str(data.get("explanation") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionText": self.question_text,
            "correctAnswer": self.correct_answer,
            "userAnswer": self.user_answer,
            "isCorrect": self.is_correct,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """
    Result of evaluating one quiz.

    Attributes:
        score: Total score awarded by the model
        max_score: Maximum score reported by the model (None if absent)
        evaluations: Per-question judgements, in question order
        improvements: Suggestions for the learner
    """
    score: float = 0.0
    max_score: Optional[float] = None
    evaluations: List[EvaluationItem] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvaluationResult":
        evaluations = data.get("evaluations")
        improvements = data.get("improvements")
        return cls(
            score=_number(data.get("score")) or 0.0,
            max_score=_number(data.get("maxScore")),
            evaluations=[EvaluationItem.from_dict(item) for item in evaluations]
            if isinstance(evaluations, list) else [],
            improvements=[str(item) for item in improvements]
            if isinstance(improvements, list) else [],
        )

    def item_at(self, index: int) -> EvaluationItem:
        """Judgement for question ``index``; an empty judgement when missing."""
        if 0 <= index < len(self.evaluations):
            return self.evaluations[index]
        return EvaluationItem()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "maxScore": self.max_score,
            "evaluations": [item.to_dict() for item in self.evaluations],
            "improvements": list(self.improvements),
        }


def reconcile_answers(
    questions: Sequence[Any],
    answer_map: Mapping[str, str],
    evaluation: EvaluationResult,
) -> List[ReconciledAnswer]:
    """
    Decide the stored answer and correctness for each question.

    Questions are aligned with the model's judgements by index, never by the
    question text the model echoes.

    - Answer: the learner's submission for that question id; the model's echo
      only when the learner submitted nothing for it.
    - Correctness: the model's boolean when it gave one; otherwise exact,
      case-sensitive equality with the stored correct answer.

    Args:
        questions: Questions in evaluation order (need ``question_id`` and
            ``correct_answer``)
        answer_map: Submitted answers keyed by question id
        evaluation: The model's evaluation

    Returns:
        One ReconciledAnswer per question, in the same order
    """
    reconciled = []

    for index, question in enumerate(questions):
        question_id = _field(question, "question_id", "id")
        item = evaluation.item_at(index)

        if question_id in answer_map:
            user_answer = answer_map[question_id]
        else:
            user_answer = item.user_answer or ""

        if item.is_correct is not None:
            is_correct = item.is_correct
        else:
            is_correct = user_answer == _field(question, "correct_answer", "correctAnswer")

        reconciled.append(
            ReconciledAnswer(
                question_id=question_id,
                user_answer=user_answer,
                is_correct=is_correct,
            )
        )

    return reconciled


def compute_percentage(
    score: Optional[float],
    max_score: Optional[float],
    fallback_max_score: Optional[float] = None,
) -> float:
    """
    Percentage score, always computed locally.

    Args:
        score: Awarded score (None counts as 0)
        max_score: Maximum reported by the model
        fallback_max_score: Stored quiz maximum, used when the model gave none

    Returns:
        ``score / max * 100``, or 0.0 when no positive maximum is known

    Example:
        >>> compute_percentage(7, 10)
        70.0
    """
    denominator = max_score or fallback_max_score
    if not denominator:
        return 0.0
    return (score or 0) / denominator * 100


class QuizEvaluator:
    """
    AI-powered evaluator for multiple-choice quizzes.

    Sends every (question, correct answer, learner answer) triple to the model
    in one request and parses the structured verdict.
    """

    def __init__(self, provider: LLMProvider):
        """
        Initialize quiz evaluator.

        Args:
            provider: Backend used for evaluation
        """
        self.provider = provider

        self.system_prompt = """You are an expert evaluator. Score the quiz and return STRICT JSON:

{
  "score": number,
  "maxScore": number,
  "evaluations": [
    {
      "questionText": "",
      "correctAnswer": "",
      "userAnswer": "",
      "isCorrect": boolean,
      "explanation": ""
    }
  ],
  "improvements": ["", ""]
}"""

        self.user_prompt = PromptTemplate(
            input_variables=["triples"],
            template="""Evaluate:
{triples}
Return ONLY JSON.""",
        )

    def build_user_prompt(
        self, questions: Sequence[Any], user_answers: Sequence[str]
    ) -> str:
        triples = []
        for index, question in enumerate(questions):
            answer = user_answers[index] if index < len(user_answers) else ""
            triples.append(
                {
                    "questionText": _field(question, "question_text", "questionText"),
                    "correctAnswer": _field(question, "correct_answer", "correctAnswer"),
                    "userAnswer": answer or "",
                }
            )
        return self.user_prompt.format(triples=json.dumps(triples))

    def evaluate_quiz(
        self,
        questions: Sequence[Any],
        user_answers: Sequence[str],
    ) -> EvaluationResult:
        """
        Evaluate a quiz.

        Args:
            questions: Questions in display order (records or dicts)
            user_answers: Learner answers aligned with ``questions`` by index

        Returns:
            The parsed EvaluationResult

        Raises:
            MalformedOutputError: If the response is not a JSON object
        """
        raw = self.provider.ask(
            self.system_prompt,
            self.build_user_prompt(questions, user_answers),
            wants_json=True,
        )
        parsed = extract_json(raw)

        if not isinstance(parsed, dict):
            raise MalformedOutputError("AI did not return a JSON object")

        return EvaluationResult.from_dict(parsed)
