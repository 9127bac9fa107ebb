"""
Configuration management for the TutorAI scoring engine.

This module centralizes all configuration settings:
- Secrets loaded from environment variables
- Sensible defaults for development
- Single source of truth for paths, grading and guest limits
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class ModelConfig:
    """LLM model configuration for the LLM-backed grader."""

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    model_name: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    )
    base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    grading_temperature: float = 0.3  # Lower temperature for consistent grading
    max_tokens: int = 2000


@dataclass
class GradingConfig:
    """Open-ended grading service configuration."""

    # Base URL of the hosted backend; the grading function lives below it
    api_url: str = field(default_factory=lambda: os.getenv("GRADING_API_URL", ""))
    api_key: str = field(default_factory=lambda: os.getenv("GRADING_API_KEY", ""))
    function_path: str = "/functions/v1/grading-open-ended"

    # "http" (hosted grading function) or "llm" (LangChain grader)
    backend: str = field(default_factory=lambda: os.getenv("GRADING_BACKEND", "http"))

    timeout: float = field(
        default_factory=lambda: float(os.getenv("GRADING_TIMEOUT", "30.0"))
    )

    # Credit awarded per open-ended question when the grader is unavailable
    fallback_credit: float = 0.5

    @property
    def endpoint(self) -> str:
        """Full URL of the batch grading function."""
        return self.api_url.rstrip("/") + self.function_path


@dataclass
class GuestLimitConfig:
    """Usage limits for anonymous (guest) sessions."""

    max_chats: int = 5
    max_quizzes: int = 5
    max_quiz_attempts: int = 5


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("TUTORAI_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    profiles_dir: Path = field(init=False)
    guest_usage_file: Path = field(init=False)
    schemas_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.profiles_dir = self.data_dir / "learning_progress"
        self.guest_usage_file = self.data_dir / "guest_usage.json"
        self.schemas_dir = Path(__file__).parent / "schemas"

    def prepare_filesystem(self):
        """
        Create data directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.profiles_dir]:
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
        from tutorai.config import config

        timeout = config.grading.timeout
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.grading = GradingConfig()
            cls._instance.guest_limits = GuestLimitConfig()
            cls._instance.logging = LoggingConfig()

        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.grading.backend not in {"http", "llm"}:
            errors.append(
                f"GRADING_BACKEND must be 'http' or 'llm', got {self.grading.backend!r}"
            )

        if self.grading.backend == "http" and not self.grading.api_url:
            errors.append("GRADING_API_URL not set in environment")

        if self.grading.backend == "llm" and not self.model.api_key:
            errors.append("OPENAI_API_KEY not set in environment")

        if self.grading.timeout <= 0:
            errors.append(f"grading timeout must be > 0, got {self.grading.timeout}")

        if not (0 <= self.grading.fallback_credit <= 1):
            errors.append(
                f"fallback_credit must be in [0, 1], got {self.grading.fallback_credit}"
            )

        if not (0 <= self.model.grading_temperature <= 2):
            errors.append(
                f"grading_temperature must be in [0, 2], got {self.model.grading_temperature}"
            )

        for name in ("max_chats", "max_quizzes", "max_quiz_attempts"):
            value = getattr(self.guest_limits, name)
            if value < 0:
                errors.append(f"guest limit {name} must be >= 0, got {value}")

        if not isinstance(logging.getLevelName(self.logging.log_level.upper()), int):
            errors.append(f"Unknown LOG_LEVEL: {self.logging.log_level}")

        for schema in ("learning_progress.schema.json", "quiz.schema.json"):
            if not (self.paths.schemas_dir / schema).exists():
                errors.append(f"Schema not found: {self.paths.schemas_dir / schema}")

        return errors


# Global config instance
config = Config()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply LoggingConfig to the root logger. Call once from the app entrypoint."""
    logging.basicConfig(
        level=(level or config.logging.log_level).upper(),
        format=config.logging.log_format,
    )
