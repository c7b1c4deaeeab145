"""
AIQuizzer demo console.

A Gradio front end over QuizOrchestrator:
- Generate an adaptive quiz
- Submit (or retry) answers and see the evaluation
- Ask for a hint on any question
- Browse filtered history with progress statistics
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import gradio as gr

from src.config import config
from src.errors import (
    AccessDeniedError,
    ConfigurationError,
    MalformedOutputError,
    RecordNotFoundError,
    describe_backend_error,
)
from src.models.quiz import Quiz, QuizSubmission
from src.orchestrator import QuizOrchestrator

logger = logging.getLogger(__name__)

# Global state (one orchestrator per process)
current_orchestrator: Optional[QuizOrchestrator] = None


def get_orchestrator() -> QuizOrchestrator:
    """Create the orchestrator on first use."""
    global current_orchestrator
    if current_orchestrator is None:
        current_orchestrator = QuizOrchestrator()
    return current_orchestrator


def _error_message(error: Exception, default: str) -> str:
    # Input and lookup errors carry their own message; backend errors are classified
    if isinstance(error, (ValueError, RecordNotFoundError, AccessDeniedError)) and not isinstance(
        error, MalformedOutputError
    ):
        return f"❌ Error: {error}"
    return f"❌ Error: {describe_backend_error(error, default)}"


def parse_answers(raw: str) -> List[Dict[str, str]]:
    """
    Parse answers typed into the console.

    Accepts either a JSON object ``{"q-...": "answer"}`` or one
    ``question_id: answer`` pair per line.

    Raises:
        ValueError: If a line has no separator
    """
    raw = (raw or "").strip()
    if not raw:
        return []

    if raw.startswith("{"):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Answers are not valid JSON: {e.msg}") from e
        return [{"question_id": str(k), "answer": str(v)} for k, v in data.items()]

    answers = []
    for line in raw.splitlines():
        if not line.strip():
            continue
        if ":" not in line:
            raise ValueError(f"Expected 'question_id: answer', got {line.strip()!r}")
        question_id, answer = line.split(":", 1)
        answers.append({"question_id": question_id.strip(), "answer": answer.strip()})
    return answers


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO date from a text box; blank means no filter."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date {value!r}, use YYYY-MM-DD") from e


def format_quiz(quiz: Quiz) -> str:
    """Markdown view of a quiz without its answers."""
    lines = [
        f"### {quiz.subject} (Grade {quiz.grade})",
        "",
        f"**Quiz ID**: `{quiz.quiz_id}`  ",
        f"**Difficulty**: {quiz.difficulty}  ",
        f"**Questions**: {len(quiz.questions)}  ",
        f"**Max score**: {quiz.max_score}",
        "",
    ]
    for question in quiz.ordered_questions():
        lines.append(f"**{question.question_number}. {question.question_text}**  ")
        lines.append(f"`{question.question_id}` · {question.difficulty}")
        lines.append("")
        for option in question.options:
            lines.append(f"- {option}")
        lines.append("")
    return "\n".join(lines)


def format_submission(submission: QuizSubmission, quiz: Optional[Quiz] = None) -> str:
    """Markdown view of an evaluated submission."""
    lines = [
        "### ✅ Quiz evaluated",
        "",
        f"**Submission ID**: `{submission.submission_id}`  ",
        f"**Score**: {submission.score:g} / {submission.max_score:g} "
        f"({submission.percentage:.1f}%)  ",
        f"**Correct answers**: {submission.correct_answers} / {len(submission.answers)}",
        "",
    ]

    questions = {q.question_id: q for q in quiz.questions} if quiz else {}
    for answer in submission.answers:
        icon = "✅" if answer.is_correct else "❌"
        question = questions.get(answer.question_id)
        label = question.question_text if question else answer.question_id
        line = f"{icon} {label}: *{answer.user_answer or '(no answer)'}*"
        if question and not answer.is_correct:
            line += f" (correct: {question.correct_answer})"
        lines.append(f"- {line}")

    if submission.improvements:
        lines.extend(["", "**Suggestions**"])
        lines.extend(f"- {tip}" for tip in submission.improvements)

    return "\n".join(lines)


def format_history(history: Dict[str, Any], stats: Optional[Dict[str, Any]] = None) -> str:
    """Markdown view of a history listing and its statistics."""
    if not history.get("count"):
        return "No quiz attempts match these filters yet."

    lines = [f"### 📊 {history['count']} attempt(s)", ""]

    if stats:
        summary = stats["summary"]
        lines.append(
            f"**Average**: {summary['mean']:.1f}% · **Median**: {summary['median']:.1f}% · "
            f"**Best**: {summary['max']:.1f}% · **Worst**: {summary['min']:.1f}%"
        )
        lines.append("")
        if stats.get("by_subject"):
            lines.append("**By subject**")
            lines.extend(
                f"- {subject}: {mean:.1f}%" for subject, mean in stats["by_subject"].items()
            )
            lines.append("")

    lines.append("| Date | Subject | Grade | Score | Correct |")
    lines.append("|---|---|---|---|---|")
    for item in history["submissions"]:
        lines.append(
            f"| {item['created_at'][:10]} | {item['subject']} | {item['grade']} "
            f"| {item['percentage']:.1f}% | {item['correct_answers']}/{item['total_questions']} |"
        )
    return "\n".join(lines)


# ==================== Gradio handlers ====================


def generate_quiz_ui(user_id: str, grade: str, subject: str, num_questions: float, difficulty: str):
    """Generate a quiz and show it; returns (markdown, quiz_id)."""
    try:
        quiz = get_orchestrator().generate_quiz(
            user_id=(user_id or "").strip(),
            grade=(grade or "").strip(),
            subject=(subject or "").strip(),
            num_questions=int(num_questions),
            difficulty=difficulty,
        )
        return format_quiz(quiz), quiz.quiz_id
    except Exception as e:
        logger.exception("Quiz generation failed")
        return _error_message(e, "Failed to generate quiz"), ""


def submit_quiz_ui(user_id: str, quiz_id: str, raw_answers: str, is_retry: bool):
    """Submit or retry a quiz and show the evaluation."""
    try:
        orchestrator = get_orchestrator()
        answers = parse_answers(raw_answers)
        user_id, quiz_id = (user_id or "").strip(), (quiz_id or "").strip()

        if is_retry:
            submission = orchestrator.retry_quiz(user_id, quiz_id, answers)
        else:
            submission = orchestrator.submit_quiz(user_id, quiz_id, answers)

        return format_submission(submission, orchestrator.store.load_quiz(quiz_id))
    except Exception as e:
        logger.exception("Quiz submission failed")
        return _error_message(e, "Failed to submit quiz")


def hint_ui(user_id: str, quiz_id: str, question_id: str):
    """Fetch (or generate) a hint for one question."""
    try:
        hint = get_orchestrator().get_hint(
            (user_id or "").strip(), (quiz_id or "").strip(), (question_id or "").strip()
        )
        return f"💡 {hint.hint_text}"
    except Exception as e:
        logger.exception("Hint generation failed")
        return _error_message(e, "Failed to generate hint")


def history_ui(user_id: str, grade: str, subject: str, date_from: str, date_to: str, min_marks: float):
    """Show filtered history with summary statistics."""
    try:
        filters = {
            "grade": (grade or "").strip() or None,
            "subject": (subject or "").strip() or None,
            "date_from": parse_date(date_from),
            "date_to": parse_date(date_to),
            "min_percentage": float(min_marks) if min_marks else None,
        }
        orchestrator = get_orchestrator()
        user_id = (user_id or "").strip()
        history = orchestrator.get_history(user_id, **filters)
        stats = orchestrator.get_history_summary(user_id, **filters)
        return format_history(history, stats)
    except Exception as e:
        logger.exception("History lookup failed")
        return _error_message(e, "Failed to fetch quiz history")


def create_interface():
    """Create the demo console."""
    with gr.Blocks(
        title="AIQuizzer - Adaptive AI Quizzes",
        theme=gr.themes.Soft(primary_hue="purple", secondary_hue="blue"),
    ) as demo:
        gr.Markdown("# 🧠 AIQuizzer\nAdaptive multiple-choice quizzes, graded by AI.")

        user_id = gr.Textbox(label="User ID", value="demo-user")

        with gr.Tab("📝 Generate"):
            with gr.Row():
                grade = gr.Textbox(label="Grade", placeholder="e.g. 5")
                subject = gr.Textbox(label="Subject", placeholder="e.g. Geography")
            with gr.Row():
                num_questions = gr.Slider(
                    config.assessment.min_questions,
                    config.assessment.max_questions,
                    value=5,
                    step=1,
                    label="Number of questions",
                )
                difficulty = gr.Dropdown(
                    list(config.assessment.difficulty_levels),
                    value=config.assessment.default_difficulty,
                    label="Difficulty",
                )
            generate_btn = gr.Button("🚀 Generate Quiz", variant="primary")
            quiz_output = gr.Markdown()
            quiz_id = gr.Textbox(label="Quiz ID", interactive=True)

        with gr.Tab("✍️ Submit"):
            answers = gr.Textbox(
                label="Answers",
                lines=6,
                placeholder="q-...: Paris\nq-...: 4",
            )
            is_retry = gr.Checkbox(label="This is a retry", value=False)
            submit_btn = gr.Button("Submit Answers", variant="primary")
            submission_output = gr.Markdown()

        with gr.Tab("💡 Hint"):
            question_id = gr.Textbox(label="Question ID")
            hint_btn = gr.Button("Get Hint")
            hint_output = gr.Markdown()

        with gr.Tab("📊 History"):
            with gr.Row():
                history_grade = gr.Textbox(label="Grade")
                history_subject = gr.Textbox(label="Subject")
                min_marks = gr.Number(label="Minimum %", value=0)
            with gr.Row():
                date_from = gr.Textbox(label="From (YYYY-MM-DD)")
                date_to = gr.Textbox(label="To (YYYY-MM-DD)")
            history_btn = gr.Button("Refresh History", variant="primary")
            history_output = gr.Markdown()

        generate_btn.click(
            generate_quiz_ui,
            inputs=[user_id, grade, subject, num_questions, difficulty],
            outputs=[quiz_output, quiz_id],
        )
        submit_btn.click(
            submit_quiz_ui,
            inputs=[user_id, quiz_id, answers, is_retry],
            outputs=[submission_output],
        )
        hint_btn.click(hint_ui, inputs=[user_id, quiz_id, question_id], outputs=[hint_output])
        history_btn.click(
            history_ui,
            inputs=[user_id, history_grade, history_subject, date_from, date_to, min_marks],
            outputs=[history_output],
        )

    return demo


if __name__ == "__main__":
    config.configure_logging()

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error("Configuration error: %s", error)
        sys.exit(1)

    config.prepare_fs()
    try:
        get_orchestrator()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    demo = create_interface()
    demo.queue()
    demo.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False,
        show_error=True,
    )
