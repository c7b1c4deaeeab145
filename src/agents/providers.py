"""
LLM provider adapter - one ``ask`` contract over every supported backend.

Backends:
- ``openai``: chat completions through LangChain's ``ChatOpenAI``
- ``groq``: chat completions through the same client, pointed at Groq's
  OpenAI-compatible endpoint
- ``gemini``: single-turn ``generate_content`` through ``google-generativeai``

Every call goes through the same ``RetryPolicy`` (exponential backoff, no
jitter). The adapter returns raw text; parsing belongs to the callers.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TypeVar

import google.generativeai as genai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..config import SUPPORTED_PROVIDERS, ModelConfig, config
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_ONLY_SUFFIX = "\nReturn strictly valid JSON only."


@dataclass
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        initial_delay: Seconds to wait before the first retry
        backoff: Multiplier applied to the delay after each retry
    """
    max_retries: int = 3
    initial_delay: float = 0.7
    backoff: float = 2.0

    @classmethod
    def from_config(cls, model_config: ModelConfig) -> "RetryPolicy":
        return cls(
            max_retries=model_config.max_retries,
            initial_delay=model_config.retry_delay,
            backoff=model_config.retry_backoff,
        )

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry (0.7, 1.4, 2.8 with the defaults)."""
        delay = self.initial_delay
        for _ in range(self.max_retries):
            yield delay
            delay *= self.backoff

    def run(self, fn: Callable[[], T], sleep: Callable[[float], None] = time.sleep) -> T:
        """
        Call ``fn`` until it succeeds or the retry budget is spent.

        The exception from the final attempt propagates unmodified.
        """
        attempts = self.max_retries + 1

        for attempt, delay in enumerate(self.delays(), start=1):
            try:
                return fn()
            except Exception as e:
                logger.warning(
                    "LLM call failed (attempt %d/%d): %r; retrying in %.2fs",
                    attempt,
                    attempts,
                    e,
                    delay,
                )
                sleep(delay)

        # Final attempt: nothing left to retry, so errors propagate as-is
        return fn()


class LLMProvider(ABC):
    """
    Common contract for all text-generation backends.

    Subclasses implement ``_complete`` for a single attempt; ``ask`` adds the
    shared retry policy.
    """

    name: str = "base"

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def ask(self, system_prompt: str, user_prompt: str, wants_json: bool = True) -> str:
        """
        Send one system/user prompt pair and return the backend's raw text.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The request itself
            wants_json: Caller expects strict JSON output

        Returns:
            Raw response text (not parsed)
        """
        return self.retry_policy.run(
            lambda: self._complete(system_prompt, user_prompt, wants_json),
            sleep=self._sleep,
        )

    @abstractmethod
    def _complete(self, system_prompt: str, user_prompt: str, wants_json: bool) -> str:
        """Perform a single backend call."""


class ChatCompletionProvider(LLMProvider):
    """
    Chat-completion backend (OpenAI or any OpenAI-compatible API such as Groq).

    Uses the backend's native JSON mode when structured output is requested.
    """

    def __init__(
        self,
        name: str,
        model_name: str,
        api_key: str,
        base_url: Optional[str] = None,
        temperature: float = 0.6,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(retry_policy=retry_policy, sleep=sleep)
        self.name = name
        self.model_name = model_name

        # Client-level retries are disabled; RetryPolicy owns retrying
        self.llm = ChatOpenAI(
            model=model_name,
            temperature=temperature,
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def _complete(self, system_prompt: str, user_prompt: str, wants_json: bool) -> str:
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        llm = self.llm
        if wants_json:
            llm = llm.bind(response_format={"type": "json_object"})

        response = llm.invoke(messages)
        return response.content


class GeminiProvider(LLMProvider):
    """
    Single-turn generation backend (Google Gemini).

    Gemini gets one combined prompt; structured output is requested with an
    explicit textual instruction.
    """

    name = "gemini"

    def __init__(
        self,
        model_name: str,
        api_key: str,
        temperature: float = 0.6,
        max_output_tokens: int = 1800,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(retry_policy=retry_policy, sleep=sleep)
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model_name)

    def build_prompt(self, system_prompt: str, user_prompt: str, wants_json: bool) -> str:
        prompt = system_prompt + "\n\n" + user_prompt
        if wants_json:
            prompt += JSON_ONLY_SUFFIX
        return prompt

    def _complete(self, system_prompt: str, user_prompt: str, wants_json: bool) -> str:
        response = self.client.generate_content(
            self.build_prompt(system_prompt, user_prompt, wants_json),
            generation_config={
                "temperature": self.temperature,
                "max_output_tokens": self.max_output_tokens,
            },
        )
        return response.text


def create_provider(
    model_config: Optional[ModelConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> LLMProvider:
    """
    Build the provider selected by ``AI_PROVIDER``.

    Call once at startup and pass the result to the pipelines.

    Args:
        model_config: Model settings (defaults to the global config)
        sleep: Sleep function used between retries

    Returns:
        A ready-to-use LLMProvider

    Raises:
        ConfigurationError: If the provider selector is unset or unknown
    """
    model_config = model_config or config.model
    provider = (model_config.provider or "").strip().lower()
    retry_policy = RetryPolicy.from_config(model_config)

    if provider == "groq":
        logger.info("Using Groq AI (model=%s)", model_config.model_for("groq"))
        return ChatCompletionProvider(
            name="groq",
            model_name=model_config.groq_model,
            api_key=model_config.groq_api_key,
            base_url=model_config.groq_base_url,
            temperature=model_config.temperature,
            timeout=model_config.request_timeout,
            retry_policy=retry_policy,
            sleep=sleep,
        )

    if provider == "openai":
        logger.info("Using OpenAI (model=%s)", model_config.model_for("openai"))
        return ChatCompletionProvider(
            name="openai",
            model_name=model_config.openai_model,
            api_key=model_config.openai_api_key,
            base_url=model_config.openai_base_url,
            temperature=model_config.temperature,
            timeout=model_config.request_timeout,
            retry_policy=retry_policy,
            sleep=sleep,
        )

    if provider == "gemini":
        logger.info("Using Google Gemini (model=%s)", model_config.model_for("gemini"))
        return GeminiProvider(
            model_name=model_config.gemini_model,
            api_key=model_config.gemini_api_key,
            temperature=model_config.temperature,
            max_output_tokens=model_config.max_output_tokens,
            retry_policy=retry_policy,
            sleep=sleep,
        )

    valid = ", ".join(f'"{p}"' for p in SUPPORTED_PROVIDERS)
    raise ConfigurationError(f"Invalid AI_PROVIDER {provider!r}. Use {valid}.")
