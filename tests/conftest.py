"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from tutor_reports.batch.repository import BatchQueueRepository
from tutor_reports.reports.repository import ReportRepository


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of tests."""
    for name in list(os.environ):
        if name.startswith("TUTOR_REPORTS_") or name == "OPENAI_API_KEY":
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def echo_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUTOR_REPORTS_GENERATION_BACKEND", "echo")


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "tutor_reports.db"


@pytest.fixture()
def queue_repository(db_path: Path) -> Iterator[BatchQueueRepository]:
    repository = BatchQueueRepository(db_path)
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()


@pytest.fixture()
def report_repository(
    db_path: Path,
    queue_repository: BatchQueueRepository,  # noqa: ARG001
) -> Iterator[ReportRepository]:
    """Report repository on the same database; schema comes from ``queue_repository``."""
    repository = ReportRepository(db_path)
    try:
        yield repository
    finally:
        repository.close()
