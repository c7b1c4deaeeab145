"""
Unit tests for the Quiz Orchestrator.

Tests the complete quiz lifecycle including:
- Adaptive quiz generation
- Submission evaluation and reconciliation
- Retries
- Hint caching
- Filtered history and summaries
- Ownership checks
"""

import json
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from conftest import FakeProvider, quiz_payload
from src.errors import AccessDeniedError, NoQuestionsGeneratedError, RecordNotFoundError
from src.orchestrator import QuizOrchestrator
from src.utils.persistence import QuizStore


def evaluation_payload(score, max_score=None, verdicts=(), improvements=("Keep practising",)):
    data = {
        "score": score,
        "evaluations": [
            {} if verdict is None else {"isCorrect": verdict} for verdict in verdicts
        ],
        "improvements": list(improvements),
    }
    if max_score is not None:
        data["maxScore"] = max_score
    return json.dumps(data)


class OrchestratorTestCase(unittest.TestCase):
    """Shared setup: fake provider plus a temporary store."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.temp_dir, ignore_errors=True)

        self.provider = FakeProvider()
        self.store = QuizStore(Path(self.temp_dir))
        self.orchestrator = QuizOrchestrator(provider=self.provider, store=self.store)

    def make_quiz(self, user_id="user-1", subject="Geography", grade="5", count=2, difficulty="medium"):
        self.provider.queue_json(quiz_payload(count, difficulty="easy"))
        return self.orchestrator.generate_quiz(
            user_id=user_id,
            grade=grade,
            subject=subject,
            num_questions=count,
            difficulty=difficulty,
        )

    def answers_for(self, quiz, *values):
        return [
            {"question_id": q.question_id, "answer": value}
            for q, value in zip(quiz.ordered_questions(), values)
        ]


class TestGeneration(OrchestratorTestCase):
    """Test quiz generation."""

    def test_initialization(self):
        self.assertIs(self.orchestrator.generator.provider, self.provider)
        self.assertIs(self.orchestrator.evaluator.provider, self.provider)
        self.assertIs(self.orchestrator.hint_generator.provider, self.provider)

    def test_generate_quiz_stores_numbered_questions(self):
        quiz = self.make_quiz(count=3)

        self.assertTrue(quiz.quiz_id.startswith("quiz-"))
        self.assertEqual(quiz.total_questions, 3)
        self.assertEqual(quiz.max_score, 30)
        self.assertEqual([q.question_number for q in quiz.questions], [1, 2, 3])
        self.assertTrue(all(q.question_id.startswith("q-") for q in quiz.questions))
        self.assertEqual(len({q.question_id for q in quiz.questions}), 3)

        stored = self.store.load_quiz(quiz.quiz_id)
        self.assertEqual(stored.to_dict(), quiz.to_dict())

    def test_max_score_uses_requested_count(self):
        self.provider.queue_json(quiz_payload(2))

        quiz = self.orchestrator.generate_quiz("user-1", "5", "Math", 4)

        self.assertEqual(len(quiz.questions), 2)
        self.assertEqual(quiz.total_questions, 4)
        self.assertEqual(quiz.max_score, 40)
        self.assertEqual(quiz.difficulty, "medium")

    def test_question_difficulty_defaults_to_request(self):
        self.provider.queue_json({"questions": [{"questionText": "Q?", "correctAnswer": "A"}]})

        quiz = self.orchestrator.generate_quiz("user-1", "5", "Math", 1, difficulty="hard")

        self.assertEqual(quiz.questions[0].difficulty, "hard")

    def test_invalid_requests_never_reach_backend(self):
        cases = [
            {"grade": "", "subject": "Math", "num_questions": 3},
            {"grade": "5", "subject": "  ", "num_questions": 3},
            {"grade": "5", "subject": "Math", "num_questions": 0},
            {"grade": "5", "subject": "Math", "num_questions": 51},
            {"grade": "5", "subject": "Math", "num_questions": True},
            {"grade": "5", "subject": "Math", "num_questions": 3, "difficulty": "expert"},
        ]
        for case in cases:
            with self.subTest(case=case):
                with self.assertRaises(ValueError):
                    self.orchestrator.generate_quiz(user_id="user-1", **case)

        self.assertEqual(self.provider.calls, [])

    def test_empty_generation_stores_nothing(self):
        self.provider.queue_json({"questions": []})

        with self.assertRaises(NoQuestionsGeneratedError):
            self.orchestrator.generate_quiz("user-1", "5", "Math", 3)

        self.assertEqual(list(self.store.quizzes_dir.glob("*.json")), [])

    def test_first_quiz_uses_default_prompt(self):
        self.make_quiz()

        self.assertIn("Generate high-quality questions", self.provider.calls[0]["user"])

    def test_later_quiz_adapts_to_history(self):
        quiz = self.make_quiz(subject="Math")
        self.provider.queue(evaluation_payload(7, 10, [True, False]))
        self.orchestrator.submit_quiz("user-1", quiz.quiz_id, self.answers_for(quiz, "A", "B"))

        self.make_quiz(subject="Math")

        user_prompt = self.provider.calls[-1]["user"]
        self.assertIn("User's past performance:", user_prompt)
        self.assertIn('"score": 70.0', user_prompt)
        self.assertIn('"difficulty": "medium"', user_prompt)

    def test_recent_history_is_limited(self):
        quiz = self.make_quiz()
        for _ in range(12):
            self.provider.queue(evaluation_payload(5, 10))
            self.orchestrator.retry_quiz("user-1", quiz.quiz_id, [])

        history = self.orchestrator.recent_history("user-1")

        self.assertEqual(len(history), 10)
        self.assertEqual(history[0].subject, "Geography")
        self.assertEqual(history[0].score, 50.0)


class TestSubmission(OrchestratorTestCase):
    """Test submissions and retries."""

    def test_submit_reconciles_and_scores(self):
        quiz = self.make_quiz()
        self.provider.queue(evaluation_payload(7, 10, [True], ["Review rivers"]))

        submission = self.orchestrator.submit_quiz(
            "user-1", quiz.quiz_id, self.answers_for(quiz, "A", "a")
        )

        self.assertTrue(submission.submission_id.startswith("sub-"))
        self.assertEqual(submission.score, 7)
        self.assertEqual(submission.max_score, 10)
        self.assertEqual(submission.percentage, 70.0)
        self.assertEqual(submission.improvements, ["Review rivers"])
        self.assertEqual([a.user_answer for a in submission.answers], ["A", "a"])
        self.assertEqual([a.is_correct for a in submission.answers], [True, False])

        self.assertEqual(self.store.load_quiz(quiz.quiz_id).score, 7)

    def test_percentage_falls_back_to_quiz_max(self):
        quiz = self.make_quiz(count=2)
        self.provider.queue(evaluation_payload(15))

        submission = self.orchestrator.submit_quiz("user-1", quiz.quiz_id, [])

        self.assertEqual(submission.max_score, 20)
        self.assertEqual(submission.percentage, 75.0)

    def test_evaluator_receives_answers_in_question_order(self):
        quiz = self.make_quiz()
        first, second = quiz.ordered_questions()
        self.provider.queue(evaluation_payload(10, 20))

        self.orchestrator.submit_quiz(
            "user-1",
            quiz.quiz_id,
            [
                {"question_id": second.question_id, "answer": "B"},
                {"question_id": first.question_id, "answer": "A"},
            ],
        )

        triples = json.loads(self.provider.calls[-1]["user"].split("\n")[1])
        self.assertEqual([t["userAnswer"] for t in triples], ["A", "B"])

    def test_retry_leaves_quiz_score(self):
        quiz = self.make_quiz()
        self.provider.queue(evaluation_payload(4, 10))
        self.orchestrator.submit_quiz("user-1", quiz.quiz_id, [])

        self.provider.queue(evaluation_payload(9, 10))
        retry = self.orchestrator.retry_quiz("user-1", quiz.quiz_id, [])

        self.assertEqual(retry.percentage, 90.0)
        self.assertEqual(self.store.load_quiz(quiz.quiz_id).score, 4)
        self.assertEqual(len(self.store.list_submissions("user-1")), 2)

    def test_unknown_quiz(self):
        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.submit_quiz("user-1", "quiz-missing", [])

    def test_other_users_quiz(self):
        quiz = self.make_quiz(user_id="owner")

        with self.assertRaises(AccessDeniedError):
            self.orchestrator.submit_quiz("intruder", quiz.quiz_id, [])
        with self.assertRaises(AccessDeniedError):
            self.orchestrator.get_quiz("intruder", quiz.quiz_id)

    def test_backend_failure_stores_nothing(self):
        quiz = self.make_quiz()
        self.provider.queue(RuntimeError("429 rate limit"))

        with self.assertRaises(RuntimeError):
            self.orchestrator.submit_quiz("user-1", quiz.quiz_id, [])

        self.assertEqual(self.store.list_submissions("user-1"), [])


class TestLookups(OrchestratorTestCase):
    """Test quiz, submission and hint lookups."""

    def test_public_quiz_hides_answers(self):
        quiz = self.make_quiz()

        view = self.orchestrator.get_quiz("user-1", quiz.quiz_id)

        self.assertEqual(len(view["questions"]), 2)
        self.assertNotIn("correct_answer", view["questions"][0])

    def test_submission_detail(self):
        quiz = self.make_quiz()
        self.provider.queue(evaluation_payload(10, 20, [True, False]))
        submission = self.orchestrator.submit_quiz(
            "user-1", quiz.quiz_id, self.answers_for(quiz, "A", "C")
        )

        detail = self.orchestrator.get_submission("user-1", submission.submission_id)

        self.assertEqual(detail["percentage"], 50.0)
        self.assertEqual([e["question_number"] for e in detail["evaluations"]], [1, 2])
        self.assertEqual(detail["evaluations"][1]["user_answer"], "C")
        self.assertEqual(detail["evaluations"][1]["correct_answer"], "A")

        with self.assertRaises(AccessDeniedError):
            self.orchestrator.get_submission("intruder", submission.submission_id)
        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.get_submission("user-1", "sub-missing")

    def test_hint_is_generated_once(self):
        quiz = self.make_quiz()
        question = quiz.questions[0]
        self.provider.queue("  Think about the first letter.  ")

        first = self.orchestrator.get_hint("user-1", quiz.quiz_id, question.question_id)
        second = self.orchestrator.get_hint("user-1", quiz.quiz_id, question.question_id)

        self.assertEqual(first.hint_text, "Think about the first letter.")
        self.assertEqual(second.hint_id, first.hint_id)
        hint_calls = [c for c in self.provider.calls if not c["wants_json"]]
        self.assertEqual(len(hint_calls), 1)

    def test_path_like_ids_are_not_found(self):
        quiz = self.make_quiz()
        question_id = quiz.questions[0].question_id
        self.provider.queue("A hint")
        self.orchestrator.get_hint("user-1", quiz.quiz_id, question_id)

        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.get_submission("user-1", f"../quizzes/{quiz.quiz_id}")
        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.get_quiz("user-1", f"../hints/{question_id}")
        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.submit_quiz("user-1", f"../quizzes/{quiz.quiz_id}", [])

    def test_hint_for_unknown_question(self):
        quiz = self.make_quiz()

        with self.assertRaises(RecordNotFoundError):
            self.orchestrator.get_hint("user-1", quiz.quiz_id, "q-missing")


class TestHistory(OrchestratorTestCase):
    """Test history browsing."""

    def setUp(self):
        super().setUp()
        self.math = self.make_quiz(subject="Math", grade="5")
        self.art = self.make_quiz(subject="Art", grade="6")

        self.provider.queue(evaluation_payload(16, 20, [True, True]))
        self.orchestrator.submit_quiz("user-1", self.math.quiz_id, self.answers_for(self.math, "A", "A"))
        self.provider.queue(evaluation_payload(8, 20, [True, False]))
        self.orchestrator.submit_quiz("user-1", self.art.quiz_id, self.answers_for(self.art, "A", "B"))

    def test_history_lists_all_attempts(self):
        history = self.orchestrator.get_history("user-1")

        self.assertEqual(history["count"], 2)
        by_subject = {item["subject"]: item for item in history["submissions"]}
        self.assertEqual(by_subject["Math"]["correct_answers"], 2)
        self.assertEqual(by_subject["Art"]["correct_answers"], 1)
        self.assertEqual(by_subject["Art"]["total_questions"], 2)

    def test_history_filters(self):
        self.assertEqual(self.orchestrator.get_history("user-1", subject="Math")["count"], 1)
        self.assertEqual(self.orchestrator.get_history("user-1", grade="6")["count"], 1)
        self.assertEqual(self.orchestrator.get_history("user-1", min_percentage=50)["count"], 1)

        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
        self.assertEqual(self.orchestrator.get_history("user-1", date_from=tomorrow)["count"], 0)
        self.assertEqual(self.orchestrator.get_history("user-1", date_to=tomorrow)["count"], 2)

    def test_history_is_per_user(self):
        self.assertEqual(self.orchestrator.get_history("someone-else")["count"], 0)

    def test_history_summary(self):
        stats = self.orchestrator.get_history_summary("user-1")

        self.assertEqual(stats["summary"]["count"], 2)
        self.assertEqual(stats["summary"]["mean"], 60.0)
        self.assertEqual(stats["by_subject"], {"Art": 40.0, "Math": 80.0})
        self.assertEqual(stats["histogram"], [("40-49", 1), ("80-89", 1)])

    def test_history_summary_with_filter(self):
        stats = self.orchestrator.get_history_summary("user-1", subject="Art")
        self.assertEqual(stats["summary"]["count"], 1)


if __name__ == "__main__":
    unittest.main()
