"""
Error types shared by the quiz pipelines and the orchestrator.

Backend exceptions are never wrapped; callers that need a user-facing message
classify the original exception with ``describe_backend_error``.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Invalid or missing process configuration (fatal at startup)."""


class MalformedOutputError(ValueError):
    """The backend's response could not be turned into the expected structure."""


class NoQuestionsGeneratedError(MalformedOutputError):
    """Generation returned no questions."""


class RecordNotFoundError(LookupError):
    """A quiz, question or submission does not exist."""


class AccessDeniedError(PermissionError):
    """A record belongs to another user."""


NOT_CONFIGURED_MESSAGE = (
    "AI service is not configured. Please check your API key and provider settings."
)
AUTH_FAILED_MESSAGE = "AI service authentication failed. Please check your API key."
RATE_LIMITED_MESSAGE = "AI service rate limit exceeded. Please try again in a moment."
GENERIC_FAILURE_MESSAGE = "Failed to generate quiz"


def describe_backend_error(error: BaseException, default: str = GENERIC_FAILURE_MESSAGE) -> str:
    """
    Map a backend failure to a user-facing message.

    Backends report failures in heterogeneous shapes, so the classification
    matches on the error text rather than on structured codes.

    Args:
        error: The exception raised by the pipeline
        default: Message used when no pattern matches

    Returns:
        One of the four user-facing messages
    """
    message = str(error)

    if "API" in message:
        return NOT_CONFIGURED_MESSAGE
    if "authentication" in message or "401" in message or "403" in message:
        return AUTH_FAILED_MESSAGE
    if "rate limit" in message or "429" in message:
        return RATE_LIMITED_MESSAGE
    return default
