"""
Shared pytest fixtures and configuration for AIQuizzer tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.agents.providers import LLMProvider, RetryPolicy  # noqa: E402
from src.utils.persistence import QuizStore  # noqa: E402


class FakeProvider(LLMProvider):
    """
    Provider that replays queued responses and records every call.

    Queued exceptions are raised instead of returned.
    """

    name = "fake"

    def __init__(self, responses=None, retry_policy=None):
        super().__init__(
            retry_policy=retry_policy or RetryPolicy(max_retries=0),
            sleep=lambda _: None,
        )
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def queue_json(self, data):
        self.responses.append(json.dumps(data))

    def _complete(self, system_prompt, user_prompt, wants_json):
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "wants_json": wants_json}
        )
        if not self.responses:
            raise AssertionError("FakeProvider has no queued response")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def quiz_payload(count=3, difficulty="easy"):
    """Generation output in the model's camelCase shape."""
    return {
        "questions": [
            {
                "questionText": f"Question {i + 1}?",
                "options": ["A", "B", "C", "D"],
                "correctAnswer": "A",
                "difficulty": difficulty,
            }
            for i in range(count)
        ]
    }


@pytest.fixture
def fake_provider():
    """A FakeProvider with an empty queue."""
    return FakeProvider()


@pytest.fixture
def quiz_store(tmp_path):
    """A QuizStore rooted in a temporary directory."""
    return QuizStore(tmp_path / "data")


@pytest.fixture
def generated_quiz_json():
    """Raw model output for a three-question quiz."""
    return json.dumps(quiz_payload())


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
