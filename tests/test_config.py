from __future__ import annotations

from pathlib import Path

import allure
import pytest

from tutor_reports.config import BatchSettings, GenerationSettings, Settings

pytestmark = [
    allure.epic("Batch Queue"),
    allure.feature("Configuration"),
]


def test_from_env_defaults() -> None:
    settings = Settings.from_env()

    assert settings.db_path == Path(".tutor_reports.db")
    assert settings.log_level == "INFO"
    assert settings.storage.sqlite_busy_timeout_ms == 5000
    assert settings.batch.sweep_interval_seconds == 30.0
    assert settings.batch.max_attempts == 3
    assert settings.generation.backend == "openai"
    assert settings.generation.model == "gpt-4o"
    assert settings.generation.api_key == ""


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TUTOR_REPORTS_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("TUTOR_REPORTS_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUTOR_REPORTS_BATCH_SWEEP_INTERVAL_SECONDS", "5.5")
    monkeypatch.setenv("TUTOR_REPORTS_BATCH_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("TUTOR_REPORTS_GENERATION_BACKEND", " ECHO ")
    monkeypatch.setenv("TUTOR_REPORTS_GENERATION_MODEL", "gpt-4o-mini")

    settings = Settings.from_env()

    assert settings.db_path == tmp_path / "env.db"
    assert settings.log_level == "DEBUG"
    assert settings.batch.sweep_interval_seconds == 5.5
    assert settings.batch.max_attempts == 4
    assert settings.generation.backend == "echo"
    assert settings.generation.model == "gpt-4o-mini"


def test_explicit_db_path_wins_over_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TUTOR_REPORTS_DB_PATH", str(tmp_path / "env.db"))

    settings = Settings.from_env(db_path=tmp_path / "cli.db")

    assert settings.db_path == tmp_path / "cli.db"


def test_api_key_falls_back_to_openai_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-fallback")
    assert Settings.from_env().generation.api_key == "sk-fallback"

    monkeypatch.setenv("TUTOR_REPORTS_GENERATION_API_KEY", "sk-primary")
    assert Settings.from_env().generation.api_key == "sk-primary"


def test_malformed_numbers_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUTOR_REPORTS_BATCH_MAX_ATTEMPTS", "three")
    with pytest.raises(ValueError, match="Invalid integer value for TUTOR_REPORTS_BATCH_MAX"):
        Settings.from_env()

    monkeypatch.delenv("TUTOR_REPORTS_BATCH_MAX_ATTEMPTS")
    monkeypatch.setenv("TUTOR_REPORTS_GENERATION_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ValueError, match="Invalid numeric value"):
        Settings.from_env()


def test_validate_for_batch_requires_api_key_for_openai() -> None:
    with pytest.raises(ValueError, match="Generation API key is required"):
        Settings().validate_for_batch()

    Settings(generation=GenerationSettings(api_key="sk-test")).validate_for_batch()
    Settings(generation=GenerationSettings(backend="echo")).validate_for_batch()


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (Settings(batch=BatchSettings(sweep_interval_seconds=0)), "SWEEP_INTERVAL_SECONDS"),
        (Settings(batch=BatchSettings(max_attempts=0)), "MAX_ATTEMPTS"),
        (Settings(generation=GenerationSettings(backend="gpt")), "Unsupported"),
        (
            Settings(generation=GenerationSettings(backend="echo", timeout_seconds=0)),
            "TIMEOUT_SECONDS",
        ),
        (
            Settings(generation=GenerationSettings(api_key="k", api_base="ftp://x")),
            "Invalid TUTOR_REPORTS_GENERATION_API_BASE",
        ),
    ],
)
def test_validate_for_batch_rejects_unusable_settings(settings: Settings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate_for_batch()


def test_log_level_is_normalized_and_validated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUTOR_REPORTS_LOG_LEVEL", " warning ")
    assert Settings.from_env().log_level == "WARNING"

    monkeypatch.setenv("TUTOR_REPORTS_LOG_LEVEL", "loud")
    with pytest.raises(ValueError, match="Invalid TUTOR_REPORTS_LOG_LEVEL: 'LOUD'"):
        Settings.from_env()
