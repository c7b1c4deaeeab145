"""Unit tests for HintGenerator."""

from conftest import FakeProvider
from src.agents.hint_generator import HintGenerator


class TestHintGenerator:
    def test_hint_is_trimmed(self):
        provider = FakeProvider(["\n  Think about the Seine river.  \n"])

        hint = HintGenerator(provider).generate_hint("Capital of France?", "Geography", "5")

        assert hint == "Think about the Seine river."

    def test_requests_plain_text(self):
        provider = FakeProvider(["hint"])

        HintGenerator(provider).generate_hint("Capital of France?", "Geography", "5")

        call = provider.calls[0]
        assert call["wants_json"] is False
        assert "DO NOT reveal the answer" in call["system"]
        assert "Grade: 5, Subject: Geography" in call["system"]
        assert call["user"].startswith("Question: Capital of France?")

    def test_empty_response(self):
        provider = FakeProvider([""])

        assert HintGenerator(provider).generate_hint("Q?", "Math", "3") == ""
