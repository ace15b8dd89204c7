"""Wiring of repositories, handlers and engine for CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from tutor_reports.batch.engine import BatchQueueEngine
from tutor_reports.batch.handlers import HandlerRegistry, build_default_registry
from tutor_reports.batch.repository import BatchQueueRepository
from tutor_reports.config import Settings
from tutor_reports.generation.base import GenerationClient
from tutor_reports.reports.repository import ReportRepository


@dataclass(slots=True)
class BatchRuntime:
    engine: BatchQueueEngine
    queue: BatchQueueRepository
    reports: ReportRepository


@contextmanager
def open_runtime(
    settings: Settings,
    *,
    client: GenerationClient | None = None,
) -> Iterator[BatchRuntime]:
    """Open repositories and build an engine.

    Without a generation client the registry is empty, which is enough for
    producers and read-only commands.
    """

    timeout_ms = settings.storage.sqlite_busy_timeout_ms
    queue = BatchQueueRepository(settings.db_path, sqlite_busy_timeout_ms=timeout_ms)
    reports = ReportRepository(settings.db_path, sqlite_busy_timeout_ms=timeout_ms)
    try:
        queue.init_schema()
        registry = (
            build_default_registry(client=client, reports=reports)
            if client is not None
            else HandlerRegistry()
        )
        engine = BatchQueueEngine(
            repository=queue,
            registry=registry,
            max_attempts=settings.batch.max_attempts,
        )
        yield BatchRuntime(engine=engine, queue=queue, reports=reports)
    finally:
        reports.close()
        queue.close()
        if client is not None:
            client.close()
