"""Controllers for batch queue CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tutor_reports.batch.models import BatchTaskStatus, QueueStats, SweepSummary
from tutor_reports.batch.runtime import open_runtime
from tutor_reports.batch.scheduler import BatchScheduler
from tutor_reports.config import Settings
from tutor_reports.generation import build_generation_client


@dataclass(slots=True)
class BatchSweepCommand:
    """CLI input for one manual sweep."""

    db_path: Path | None


@dataclass(slots=True)
class BatchRunCommand:
    """CLI input for the scheduler loop."""

    db_path: Path | None
    interval_seconds: float | None
    max_sweeps: int | None


@dataclass(slots=True)
class BatchStatusCommand:
    db_path: Path | None


@dataclass(slots=True)
class BatchQueueCommand:
    """CLI input for queue listing."""

    db_path: Path | None
    status: str | None
    limit: int


@dataclass(slots=True)
class BatchInspectCommand:
    db_path: Path | None
    task_id: int


class BatchCliController:
    """Coordinates sweep, scheduler, and queue inspection CLI operations."""

    def sweep(self, command: BatchSweepCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate_for_batch()
        client = build_generation_client(settings.generation)
        with open_runtime(settings, client=client) as runtime:
            summary = runtime.engine.run_pending_sweep()
        return [_render_summary(summary)]

    def run(self, command: BatchRunCommand) -> list[str]:
        """Run the scheduler loop in the foreground."""

        settings = Settings.from_env(db_path=command.db_path)
        settings.validate_for_batch()
        interval = command.interval_seconds or settings.batch.sweep_interval_seconds
        client = build_generation_client(settings.generation)
        with open_runtime(settings, client=client) as runtime:
            scheduler = BatchScheduler(engine=runtime.engine, interval_seconds=interval)
            try:
                sweeps = scheduler.run_forever(max_sweeps=command.max_sweeps)
            except KeyboardInterrupt:
                sweeps = None
            stats = runtime.engine.queue_status()

        lines = [
            "Scheduler stopped: "
            f"sweeps={sweeps if sweeps is not None else 'interrupted'} interval={interval}s",
        ]
        lines.extend(_render_stats(stats))
        return lines

    def status(self, command: BatchStatusCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with open_runtime(settings) as runtime:
            stats = runtime.engine.queue_status()
        return _render_stats(stats)

    def list_queue(self, command: BatchQueueCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status = BatchTaskStatus(command.status.lower()) if command.status else None
        with open_runtime(settings) as runtime:
            tasks = runtime.engine.list_queue(status=status, limit=command.limit)
        if not tasks:
            return ["No tasks found."]

        lines = [f"Tasks: {len(tasks)}"]
        for task in tasks:
            lines.append(
                f"- {task.task_id} type={task.task_type} status={task.status.value} "
                f"priority={task.priority} attempts={task.attempts}/{task.max_attempts} "
                f"created_at={task.created_at.isoformat()} "
                f"error={task.error_message or '-'}",
            )
        return lines

    def inspect_task(self, command: BatchInspectCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with open_runtime(settings) as runtime:
            details = runtime.queue.get_task_details(task_id=command.task_id)
        if details is None:
            return [f"Task not found: {command.task_id}"]

        task = details.task
        lines = [
            f"Task: {task.task_id}",
            f"Type: {task.task_type}",
            f"Status: {task.status.value}",
            f"Priority: {task.priority}",
            f"Attempts: {task.attempts}/{task.max_attempts}",
            f"Error: {task.error_message or '-'}",
            f"Processed at: {task.processed_at.isoformat() if task.processed_at else '-'}",
            f"Events: {len(details.events)}",
        ]
        for event in details.events:
            lines.append(
                f"  {event.created_at.isoformat()} {event.event_type} "
                f"{event.status_from.value if event.status_from else '-'} -> "
                f"{event.status_to.value if event.status_to else '-'}",
            )
        return lines


def _render_summary(summary: SweepSummary) -> str:
    if summary.skipped:
        return "Sweep skipped: another sweep is in progress."
    return (
        "Sweep summary: "
        f"eligible={summary.eligible} claimed={summary.claimed} "
        f"completed={summary.completed} retried={summary.retried} "
        f"failed={summary.failed} skipped_claims={summary.skipped_claims}"
    )


def _render_stats(stats: QueueStats) -> list[str]:
    last = stats.last_processed_at.isoformat() if stats.last_processed_at else "-"
    return [
        f"Pending: {stats.pending_count}",
        f"Processing: {stats.processing_count}",
        f"Last processed: {last}",
    ]
