"""
Configuration management for AIQuizzer.

This module centralizes all configuration settings following 12-factor app principles:
- Secrets loaded from environment variables
- Sensible defaults for development
- Provider selection resolved once per process
- Single source of truth for all settings
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


SUPPORTED_PROVIDERS = ("groq", "openai", "gemini")


@dataclass
class ModelConfig:
    """LLM backend configuration (provider selector plus per-backend settings)."""

    # Backend family: "groq", "openai" or "gemini"
    provider: str = field(
        default_factory=lambda: os.getenv("AI_PROVIDER", "").strip().lower()
    )

    # OpenAI settings
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    openai_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
    )
    openai_base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    # Groq settings (OpenAI-compatible endpoint)
    groq_api_key: str = field(default_factory=lambda: os.getenv("GROQ_API_KEY", ""))
    groq_model: str = field(
        default_factory=lambda: os.getenv("GROQ_MODEL") or "llama-3.1-70b-versatile"
    )
    groq_base_url: str = field(
        default_factory=lambda: os.getenv("GROQ_BASE_URL")
        or "https://api.groq.com/openai/v1"
    )

    # Gemini settings
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL") or "gemini-pro"
    )

    temperature: float = 0.6
    max_output_tokens: int = 1800

    # Guardrails
    max_retries: int = field(
        default_factory=lambda: int(os.getenv("AI_MAX_RETRIES", "3"))
    )
    retry_delay: float = field(
        default_factory=lambda: float(os.getenv("AI_RETRY_DELAY", "0.7"))
    )
    retry_backoff: float = field(
        default_factory=lambda: float(os.getenv("AI_RETRY_BACKOFF", "2.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    )

    def api_key_for(self, provider: Optional[str] = None) -> str:
        """Credential for the given (or selected) provider."""
        provider = provider or self.provider
        return {
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
            "gemini": self.gemini_api_key,
        }.get(provider, "")

    def model_for(self, provider: Optional[str] = None) -> str:
        """Model name for the given (or selected) provider."""
        provider = provider or self.provider
        return {
            "openai": self.openai_model,
            "groq": self.groq_model,
            "gemini": self.gemini_model,
        }.get(provider, "")


@dataclass
class AssessmentConfig:
    """Quiz generation and scoring configuration."""

    difficulty_levels: tuple = ("easy", "medium", "hard")
    default_difficulty: str = "medium"

    # Bounds on requested quiz size
    min_questions: int = 1
    max_questions: int = 50

    # Each question is worth this many points in the stored max score
    points_per_question: int = 10

    # Number of recent submissions fed to the generator as history signals
    history_limit: int = 10


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("QUIZZER_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    quizzes_dir: Path = field(init=False)
    submissions_dir: Path = field(init=False)
    hints_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.data_dir = Path(self.data_dir)
        self.quizzes_dir = self.data_dir / "quizzes"
        self.submissions_dir = self.data_dir / "submissions"
        self.hints_dir = self.data_dir / "hints"

    def prepare_filesystem(self):
        """
        Create directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [
            self.data_dir,
            self.quizzes_dir,
            self.submissions_dir,
            self.hints_dir,
        ]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from src.config import config

        # Access settings
        provider = config.model.provider
        points = config.assessment.points_per_question

        # Prepare filesystem and logging (call once at startup)
        config.prepare_fs()
        config.configure_logging()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.assessment = AssessmentConfig()
            cls._instance.logging = LoggingConfig()

        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def configure_logging(self):
        """Apply the configured log level and format to the root logger."""
        logging.basicConfig(
            level=getattr(logging, self.logging.log_level.upper(), logging.INFO),
            format=self.logging.log_format,
        )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        # Provider validation
        if not self.model.provider:
            errors.append(
                "AI_PROVIDER not set in environment (use one of: "
                + ", ".join(SUPPORTED_PROVIDERS) + ")"
            )
        elif self.model.provider not in SUPPORTED_PROVIDERS:
            errors.append(
                f"Invalid AI_PROVIDER '{self.model.provider}' (use one of: "
                + ", ".join(SUPPORTED_PROVIDERS) + ")"
            )
        elif not self.model.api_key_for():
            errors.append(
                f"{self.model.provider.upper()}_API_KEY not set in environment"
            )

        if not (0 <= self.model.temperature <= 2):
            errors.append(f"temperature must be in [0, 2], got {self.model.temperature}")

        if self.model.max_output_tokens <= 0:
            errors.append(
                f"max_output_tokens must be > 0, got {self.model.max_output_tokens}"
            )

        if self.model.max_retries < 0:
            errors.append(f"max_retries must be >= 0, got {self.model.max_retries}")

        if self.model.retry_delay < 0:
            errors.append(f"retry_delay must be >= 0, got {self.model.retry_delay}")

        # Assessment validation
        if self.assessment.default_difficulty not in self.assessment.difficulty_levels:
            errors.append(
                f"default_difficulty must be one of {self.assessment.difficulty_levels}, "
                f"got {self.assessment.default_difficulty}"
            )

        if not (1 <= self.assessment.min_questions <= self.assessment.max_questions):
            errors.append(
                f"question bounds must satisfy 1 <= min <= max, got "
                f"[{self.assessment.min_questions}, {self.assessment.max_questions}]"
            )

        if self.assessment.points_per_question <= 0:
            errors.append(
                f"points_per_question must be > 0, got {self.assessment.points_per_question}"
            )

        return errors


# Global config instance
config = Config()
