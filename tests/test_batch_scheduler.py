from __future__ import annotations

import threading
from typing import Any

import allure
import pytest

from tutor_reports.batch.engine import BatchQueueEngine
from tutor_reports.batch.handlers import HandlerRegistry, TaskHandler
from tutor_reports.batch.models import BatchTaskStatus, SweepSummary
from tutor_reports.batch.repository import BatchQueueRepository
from tutor_reports.batch.scheduler import BatchScheduler
from tutor_reports.storage.common import StoreError

pytestmark = [
    allure.epic("Batch Queue"),
    allure.feature("Scheduler"),
]


class SignalHandler(TaskHandler):
    def __init__(self) -> None:
        self.done = threading.Event()

    def execute(self, payload: dict[str, Any]) -> object:  # noqa: ARG002
        self.done.set()
        return None


class FlakyEngine:
    """Engine double whose first sweep raises."""

    def __init__(self) -> None:
        self.calls = 0
        self.recovered = threading.Event()

    def run_pending_sweep(self) -> SweepSummary:
        self.calls += 1
        if self.calls == 1:
            raise StoreError("fetch_eligible_pending failed: disk I/O error")
        self.recovered.set()
        return SweepSummary()


def _engine(repository: BatchQueueRepository, handler: TaskHandler) -> BatchQueueEngine:
    registry = HandlerRegistry()
    registry.register("work", handler)
    return BatchQueueEngine(repository=repository, registry=registry)


def test_background_scheduler_sweeps_on_interval(
    queue_repository: BatchQueueRepository,
) -> None:
    handler = SignalHandler()
    engine = _engine(queue_repository, handler)
    task_id = engine.enqueue("work", {})
    scheduler = BatchScheduler(engine=engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert scheduler.is_running
        assert handler.done.wait(timeout=10)
    finally:
        scheduler.stop()

    assert scheduler.is_running is False
    task = queue_repository.get_task(task_id=task_id)
    assert task is not None
    assert task.status == BatchTaskStatus.COMPLETED


def test_scheduler_loop_survives_sweep_errors() -> None:
    engine = FlakyEngine()
    scheduler = BatchScheduler(engine=engine, interval_seconds=0.01)  # type: ignore[arg-type]

    scheduler.start()
    try:
        assert engine.recovered.wait(timeout=10)
    finally:
        scheduler.stop()

    assert engine.calls >= 2


def test_run_forever_stops_after_max_sweeps() -> None:
    engine = FlakyEngine()
    scheduler = BatchScheduler(engine=engine, interval_seconds=0.01)  # type: ignore[arg-type]

    sweeps = scheduler.run_forever(max_sweeps=3)

    assert sweeps == 3
    assert engine.calls == 3


def test_manual_trigger_shares_single_flight_gate(
    queue_repository: BatchQueueRepository,
) -> None:
    entered = threading.Event()
    release = threading.Event()

    class Blocking(TaskHandler):
        def execute(self, payload: dict[str, Any]) -> object:  # noqa: ARG002
            entered.set()
            release.wait(timeout=10)
            return None

    engine = _engine(queue_repository, Blocking())
    engine.enqueue("work", {})
    scheduler = BatchScheduler(engine=engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert entered.wait(timeout=10)
        manual = scheduler.trigger_now()
        assert manual.skipped is True
    finally:
        release.set()
        scheduler.stop()

    assert engine.queue_status().pending_count == 0


def test_scheduler_rejects_non_positive_interval(
    queue_repository: BatchQueueRepository,
) -> None:
    engine = _engine(queue_repository, SignalHandler())

    with pytest.raises(ValueError, match="interval_seconds"):
        BatchScheduler(engine=engine, interval_seconds=0)


def test_stop_timeout_keeps_busy_thread_and_restart_does_not_spawn_another(
    queue_repository: BatchQueueRepository,
) -> None:
    entered = threading.Event()
    release = threading.Event()

    class Blocking(TaskHandler):
        def execute(self, payload: dict[str, Any]) -> object:  # noqa: ARG002
            entered.set()
            release.wait(timeout=10)
            return None

    engine = _engine(queue_repository, Blocking())
    engine.enqueue("work", {})
    scheduler = BatchScheduler(engine=engine, interval_seconds=0.01)

    scheduler.start()
    try:
        assert entered.wait(timeout=10)
        scheduler.stop(timeout=0.05)
        assert scheduler.is_running is True

        scheduler.start()
        workers = [t for t in threading.enumerate() if t.name == "batch-scheduler"]
        assert len(workers) == 1
    finally:
        release.set()
        scheduler.stop()

    assert scheduler.is_running is False
