"""
Hint Generator Agent - short, answer-free hints for a quiz question.
"""

from __future__ import annotations

from langchain_core.prompts import PromptTemplate

from .providers import LLMProvider


class HintGenerator:
    """Produces one plain-text hint per call (caching is the caller's job)."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

        self.system_prompt = PromptTemplate(
            input_variables=["grade", "subject"],
            template="""You are a tutor. Give a hint but DO NOT reveal the answer.
Grade: {grade}, Subject: {subject}.""",
        )

        self.user_prompt = PromptTemplate(
            input_variables=["question"],
            template="""Question: {question}
Give a short hint:""",
        )

    def generate_hint(self, question_text: str, subject: str, grade: str) -> str:
        """
        Generate a hint for a question.

        Args:
            question_text: The question
            subject: Quiz subject
            grade: Learner's grade

        Returns:
            Hint text, trimmed
        """
        raw = self.provider.ask(
            self.system_prompt.format(grade=grade, subject=subject),
            self.user_prompt.format(question=question_text),
            wants_json=False,
        )
        return (raw or "").strip()
