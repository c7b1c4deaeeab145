"""
Unit tests for the JSON quiz store and history filters.
"""

import json
from datetime import datetime, timezone

import pytest

from src.models.quiz import Hint, Question, Quiz, QuizSubmission, ReconciledAnswer
from src.utils.persistence import QuizStore, filter_submissions


def make_quiz(user_id="user-1", grade="5", subject="Geography", count=2):
    return Quiz(
        user_id=user_id,
        grade=grade,
        subject=subject,
        difficulty="medium",
        total_questions=count,
        max_score=count * 10,
        questions=[
            Question(
                question_id=f"q-{i}",
                question_number=i + 1,
                question_text=f"Question {i + 1}?",
                correct_answer="A",
                difficulty="medium",
                options=["A", "B", "C", "D"],
            )
            for i in range(count)
        ],
    )


def make_submission(quiz, percentage=50.0, created_at=None, user_id=None):
    submission = QuizSubmission(
        quiz_id=quiz.quiz_id,
        user_id=user_id or quiz.user_id,
        score=percentage / 10,
        max_score=10,
        percentage=percentage,
        answers=[ReconciledAnswer("q-0", "A", True), ReconciledAnswer("q-1", "B", False)],
    )
    if created_at:
        submission.created_at = created_at
    return submission


class TestQuizStore:
    def test_creates_directories(self, tmp_path):
        store = QuizStore(tmp_path / "store")
        assert store.quizzes_dir.is_dir()
        assert store.submissions_dir.is_dir()
        assert store.hints_dir.is_dir()

    def test_quiz_roundtrip(self, quiz_store):
        quiz = make_quiz()
        quiz_store.save_quiz(quiz)

        loaded = quiz_store.load_quiz(quiz.quiz_id)

        assert loaded.to_dict() == quiz.to_dict()
        assert (quiz_store.quizzes_dir / f"{quiz.quiz_id}.json").exists()

    def test_missing_quiz_is_none(self, quiz_store):
        assert quiz_store.load_quiz("quiz-missing") is None

    def test_invalid_quiz_is_rejected(self, quiz_store):
        quiz = make_quiz()
        quiz.questions = []

        with pytest.raises(ValueError, match="Invalid quiz"):
            quiz_store.save_quiz(quiz)
        assert quiz_store.load_quiz(quiz.quiz_id) is None

    def test_submission_roundtrip(self, quiz_store):
        submission = make_submission(make_quiz())
        quiz_store.save_submission(submission)

        loaded = quiz_store.load_submission(submission.submission_id)

        assert loaded.to_dict() == submission.to_dict()
        assert loaded.correct_answers == 1

    def test_list_submissions_newest_first_with_limit(self, quiz_store):
        quiz = make_quiz()
        for day in (1, 3, 2):
            quiz_store.save_submission(
                make_submission(quiz, percentage=day * 10.0, created_at=f"2024-05-0{day}T10:00:00+00:00")
            )
        quiz_store.save_submission(make_submission(quiz, user_id="someone-else"))

        submissions = quiz_store.list_submissions("user-1")
        assert [s.percentage for s in submissions] == [30.0, 20.0, 10.0]

        assert len(quiz_store.list_submissions("user-1", limit=2)) == 2

    def test_unreadable_record_is_skipped(self, quiz_store):
        quiz_store.save_submission(make_submission(make_quiz()))
        (quiz_store.submissions_dir / "sub-broken.json").write_text("{not json")

        assert len(quiz_store.list_submissions("user-1")) == 1

    def test_hint_cache(self, quiz_store):
        assert quiz_store.find_hint("q-0") is None

        hint = quiz_store.save_hint(Hint(question_id="q-0", hint_text="Think north."))
        found = quiz_store.find_hint("q-0")

        assert found.hint_id == hint.hint_id
        assert found.hint_text == "Think north."

    def test_ids_outside_their_directory_are_not_found(self, quiz_store):
        quiz = make_quiz()
        quiz_store.save_quiz(quiz)
        submission = quiz_store.save_submission(make_submission(quiz))
        quiz_store.save_hint(Hint(question_id="q-0", hint_text="Think north."))

        assert quiz_store.load_quiz(f"../submissions/{submission.submission_id}") is None
        assert quiz_store.load_submission(f"../quizzes/{quiz.quiz_id}") is None
        assert quiz_store.find_hint(f"../quizzes/{quiz.quiz_id}") is None

    def test_ids_with_wrong_prefix_are_not_found(self, quiz_store):
        quiz = quiz_store.save_quiz(make_quiz())

        assert quiz_store.load_submission(quiz.quiz_id) is None
        assert quiz_store.load_quiz(None) is None
        assert quiz_store.find_hint("") is None

    def test_hint_with_unsafe_question_id_is_rejected(self, quiz_store):
        with pytest.raises(ValueError):
            quiz_store.save_hint(Hint(question_id="q-../../escape", hint_text="x"))
        assert list(quiz_store.data_dir.rglob("escape*")) == []

    def test_files_are_utf8_json(self, quiz_store):
        quiz = make_quiz(subject="Géographie")
        quiz_store.save_quiz(quiz)

        path = quiz_store.quizzes_dir / f"{quiz.quiz_id}.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["subject"] == "Géographie"


class TestFilterSubmissions:
    @pytest.fixture
    def records(self):
        math = make_quiz(grade="5", subject="Math")
        art = make_quiz(grade="6", subject="Art")
        submissions = [
            make_submission(math, 80.0, "2024-05-10T09:00:00+00:00"),
            make_submission(art, 40.0, "2024-05-05T09:00:00+00:00"),
            make_submission(math, 60.0, "2024-04-01T09:00:00+00:00"),
        ]
        quizzes = {math.quiz_id: math, art.quiz_id: art}
        return submissions, quizzes

    def test_no_filters_keeps_all(self, records):
        submissions, quizzes = records
        assert filter_submissions(submissions, quizzes) == submissions

    def test_grade_and_subject(self, records):
        submissions, quizzes = records

        assert [s.percentage for s in filter_submissions(submissions, quizzes, grade="5")] == [80.0, 60.0]
        assert [s.percentage for s in filter_submissions(submissions, quizzes, subject="Art")] == [40.0]

    def test_date_range(self, records):
        submissions, quizzes = records

        kept = filter_submissions(
            submissions,
            quizzes,
            date_from=datetime(2024, 5, 1, tzinfo=timezone.utc),
            date_to=datetime(2024, 5, 6),
        )
        assert [s.percentage for s in kept] == [40.0]

    def test_min_percentage_is_inclusive(self, records):
        submissions, quizzes = records

        kept = filter_submissions(submissions, quizzes, min_percentage=60)
        assert [s.percentage for s in kept] == [80.0, 60.0]

    def test_missing_quiz_is_dropped(self, records):
        submissions, quizzes = records
        quizzes.pop(submissions[1].quiz_id)

        assert len(filter_submissions(submissions, quizzes)) == 2
