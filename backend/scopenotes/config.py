"""
ScopeNotes Backend — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    Attributes are grouped by concern.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///path.db or postgresql+asyncpg://user:pw@host/db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scopenotes.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing applies to server databases only (ignored for SQLite)
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Scope Resolution ──────────────────────────────────────────────────
    # What: Name of the request header that carries the category identifier
    # Header lookup is case-insensitive, so "categoryid" works as well
    category_header: str = Field(default="CategoryId", min_length=1)

    # ── Background Jobs ───────────────────────────────────────────────────
    # What: Number of worker tasks draining the in-process job queue
    job_worker_count: int = Field(default=2, ge=1, le=32)

    # What: Maximum number of queued (not yet started) jobs; 0 = unbounded
    job_queue_max_size: int = Field(default=1000, ge=0)

    # What: How many finished job records are kept for GET /api/jobs/{id}
    job_history_size: int = Field(default=500, ge=10, le=100_000)

    # Backoff between automatic retries for job types whose policy allows them.
    # The cleanup job allows none, so these only matter for other job kinds.
    job_retry_min_wait: int = Field(default=1, ge=0, le=30)
    job_retry_max_wait: int = Field(default=10, ge=1, le=120)

    # ── Bootstrap ─────────────────────────────────────────────────────────
    # What: Seed the default category and its notes on startup
    seed_on_startup: bool = Field(default=True)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("category_header")
    @classmethod
    def validate_category_header(cls, v: str) -> str:
        """Header names cannot contain whitespace or a colon."""
        stripped = v.strip()
        if not stripped or any(ch.isspace() or ch == ":" for ch in stripped):
            raise ValueError(f"Invalid category_header '{v}'")
        return stripped

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # DATABASE_URL and database_url both work
    }


# Singleton instance, imported throughout the application
settings = Settings()
