"""Runtime configuration for the report batch queue."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

SUPPORTED_GENERATION_BACKENDS = ("openai", "echo")
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class StorageSettings:
    """SQLite storage settings."""

    sqlite_busy_timeout_ms: int = 5_000


@dataclass(slots=True)
class BatchSettings:
    """Sweep scheduling and retry settings."""

    sweep_interval_seconds: float = 30.0
    max_attempts: int = 3


@dataclass(slots=True)
class GenerationSettings:
    """External text-generation endpoint settings."""

    backend: str = "openai"
    api_base: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o"
    timeout_seconds: float = 60.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".tutor_reports.db")
    log_level: str = "INFO"
    storage: StorageSettings = field(default_factory=StorageSettings)
    batch: BatchSettings = field(default_factory=BatchSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("TUTOR_REPORTS_DB_PATH", ".tutor_reports.db")),
            log_level=_env_log_level("TUTOR_REPORTS_LOG_LEVEL", "INFO"),
            storage=StorageSettings(
                sqlite_busy_timeout_ms=_env_int("TUTOR_REPORTS_SQLITE_BUSY_TIMEOUT_MS", 5000),
            ),
            batch=BatchSettings(
                sweep_interval_seconds=_env_float(
                    "TUTOR_REPORTS_BATCH_SWEEP_INTERVAL_SECONDS",
                    30.0,
                ),
                max_attempts=_env_int("TUTOR_REPORTS_BATCH_MAX_ATTEMPTS", 3),
            ),
            generation=GenerationSettings(
                backend=os.getenv("TUTOR_REPORTS_GENERATION_BACKEND", "openai").strip().lower(),
                api_base=os.getenv(
                    "TUTOR_REPORTS_GENERATION_API_BASE",
                    "https://api.openai.com/v1",
                ).strip(),
                api_key=os.getenv(
                    "TUTOR_REPORTS_GENERATION_API_KEY",
                    os.getenv("OPENAI_API_KEY", ""),
                ).strip(),
                model=os.getenv("TUTOR_REPORTS_GENERATION_MODEL", "gpt-4o").strip(),
                timeout_seconds=_env_float("TUTOR_REPORTS_GENERATION_TIMEOUT_SECONDS", 60.0),
            ),
        )

    def validate_for_batch(self) -> None:
        """Raise configuration error if sweep or generation settings are unusable."""

        if self.batch.sweep_interval_seconds <= 0:
            raise ValueError("TUTOR_REPORTS_BATCH_SWEEP_INTERVAL_SECONDS must be > 0.")
        if self.batch.max_attempts <= 0:
            raise ValueError("TUTOR_REPORTS_BATCH_MAX_ATTEMPTS must be a positive integer.")

        generation = self.generation
        if generation.backend not in SUPPORTED_GENERATION_BACKENDS:
            raise ValueError(
                f"Unsupported TUTOR_REPORTS_GENERATION_BACKEND: {generation.backend!r}. "
                f"Expected one of: {', '.join(SUPPORTED_GENERATION_BACKENDS)}.",
            )
        if generation.timeout_seconds <= 0:
            raise ValueError("TUTOR_REPORTS_GENERATION_TIMEOUT_SECONDS must be > 0.")
        if generation.backend == "openai":
            if not generation.api_key:
                raise ValueError(
                    "Generation API key is required. "
                    "Set TUTOR_REPORTS_GENERATION_API_KEY or OPENAI_API_KEY.",
                )
            _validate_api_base(generation.api_base)


def _validate_api_base(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid TUTOR_REPORTS_GENERATION_API_BASE: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {value!r}") from error


def _env_log_level(name: str, default: str) -> str:
    value = (os.getenv(name) or default).strip().upper()
    if value not in SUPPORTED_LOG_LEVELS:
        raise ValueError(
            f"Invalid {name}: {value!r}. Expected one of: {', '.join(SUPPORTED_LOG_LEVELS)}.",
        )
    return value
