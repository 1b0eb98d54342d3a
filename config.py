"""
Configuration settings for the quizcore assessment engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUIZCORE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///quizcore.db",
        description="SQLAlchemy connection string for quizzes, questions and attempts",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated at 10 MB)",
    )

    # ========================================
    # External Services
    # ========================================
    completion_service_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the progress service answering prerequisite completion lookups",
    )
    transcription_service_url: str = Field(
        default="http://localhost:8090",
        description="Base URL of the speech-to-text service used for audio responses",
    )
    http_timeout_ms: int = Field(
        default=10000,
        description="Timeout for collaborator HTTP calls in milliseconds",
    )
    http_retry_attempts: int = Field(
        default=3,
        description="Retries for collaborator HTTP calls on timeouts and 5xx",
    )

    # ========================================
    # Scoring
    # ========================================
    math_tolerance: float = Field(
        default=0.0001,
        description="Default absolute tolerance for math-equation sample comparison",
    )
    math_sample_points: list[float] = Field(
        default=[-2.0, -1.0, 0.0, 1.0, 2.0],
        description="Values substituted into both expressions when symbolic equality fails",
    )
    text_full_credit_threshold: float = Field(
        default=0.8,
        description="Similarity above which an audio response earns full credit",
    )
    label_partial_threshold: float = Field(
        default=0.7,
        description="Similarity above which a diagram label earns half credit",
    )
    scoring_max_workers: int = Field(
        default=1,
        description="Thread pool size for scoring questions of one submission (1 = sequential)",
    )

    # ========================================
    # Statistics
    # ========================================
    discrimination_group_fraction: float = Field(
        default=0.27,
        description="Fraction of attempts in the upper/lower reference groups",
    )
    stats_refresh_workers: int = Field(
        default=2,
        description="Background threads used to refresh quiz statistics after submissions",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
