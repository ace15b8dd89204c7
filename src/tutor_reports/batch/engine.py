"""Sweep engine: single-flight gate, per-task state machine, retry policy."""

from __future__ import annotations

import logging
import threading
from typing import Any, NamedTuple

from tutor_reports.batch.handlers import HandlerRegistry, TaskHandler
from tutor_reports.batch.models import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PRIORITY,
    BatchTaskCreate,
    BatchTaskStatus,
    BatchTaskView,
    QueueStats,
    SweepSummary,
    TaskType,
)
from tutor_reports.batch.repository import BatchQueueRepository
from tutor_reports.storage.common import StoreError

logger = logging.getLogger(__name__)

REPORT_GENERATION_PRIORITY = 1
STUDENT_ANALYSIS_PRIORITY = 2


class RetryOutcome(NamedTuple):
    retried: bool
    failed: bool


class BatchQueueEngine:
    """Processes pending tasks in priority order, one sweep at a time.

    A sweep claims each eligible task with a conditional update, dispatches it
    to the handler registered for its type, and records the outcome. Handler
    errors drive the retry policy and never stop the sweep; store errors from
    queue transitions abort the sweep and propagate to the caller.
    """

    def __init__(
        self,
        *,
        repository: BatchQueueRepository,
        registry: HandlerRegistry,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}.")
        self.repository = repository
        self.registry = registry
        self.max_attempts = max_attempts
        self._gate = threading.Lock()

    @property
    def is_sweeping(self) -> bool:
        return self._gate.locked()

    def enqueue(
        self,
        task_type: str,
        payload: dict[str, Any],
        *,
        priority: int = DEFAULT_PRIORITY,
        max_attempts: int | None = None,
    ) -> int:
        """Add a pending task and return its id."""

        task = self.repository.enqueue_task(
            BatchTaskCreate(
                task_type=task_type,
                payload=payload,
                priority=priority,
                max_attempts=max_attempts if max_attempts is not None else self.max_attempts,
            ),
        )
        logger.info(
            "Enqueued task %s (type=%s, priority=%s)",
            task.task_id,
            task.task_type,
            task.priority,
        )
        return task.task_id

    def add_report_generation_task(
        self,
        report_id: int,
        student: dict[str, Any],
        report: dict[str, Any],
        *,
        priority: int = REPORT_GENERATION_PRIORITY,
    ) -> int:
        return self.enqueue(
            TaskType.REPORT_GENERATION.value,
            {"report_id": report_id, "student": student, "report": report},
            priority=priority,
        )

    def add_student_analysis_task(
        self,
        student_id: int,
        analysis_data: dict[str, Any],
        *,
        priority: int = STUDENT_ANALYSIS_PRIORITY,
    ) -> int:
        return self.enqueue(
            TaskType.STUDENT_ANALYSIS.value,
            {"student_id": student_id, "analysis_data": analysis_data},
            priority=priority,
        )

    def run_pending_sweep(self) -> SweepSummary:
        """Process every eligible task once.

        Returns immediately with ``skipped=True`` when another sweep holds the
        gate.
        """

        if not self._gate.acquire(blocking=False):
            logger.info("Batch sweep already in progress; skipping")
            return SweepSummary(skipped=True)

        summary = SweepSummary()
        try:
            try:
                tasks = self.repository.fetch_eligible_pending()
            except StoreError:
                logger.exception("Store failure while selecting pending tasks")
                raise
            summary.eligible = len(tasks)
            logger.info("Batch sweep started: %s eligible task(s)", summary.eligible)
            for task in tasks:
                self._process_task(task=task, summary=summary)
        finally:
            self._gate.release()

        logger.info(
            "Batch sweep finished: claimed=%s completed=%s retried=%s failed=%s "
            "skipped_claims=%s",
            summary.claimed,
            summary.completed,
            summary.retried,
            summary.failed,
            summary.skipped_claims,
        )
        return summary

    def queue_status(self) -> QueueStats:
        return self.repository.queue_stats()

    def list_queue(
        self,
        *,
        status: BatchTaskStatus | None = None,
        limit: int = 50,
    ) -> list[BatchTaskView]:
        return self.repository.list_tasks(status=status, limit=limit)

    def _process_task(self, *, task: BatchTaskView, summary: SweepSummary) -> None:
        try:
            claimed = self.repository.claim_task(task_id=task.task_id)
        except StoreError:
            logger.exception("Store failure while claiming task %s", task.task_id)
            raise
        if claimed is None:
            logger.info("Task %s was claimed elsewhere; skipping", task.task_id)
            summary.skipped_claims += 1
            return

        summary.claimed += 1
        logger.info(
            "Processing task %s (type=%s, attempt %s/%s)",
            claimed.task_id,
            claimed.task_type,
            claimed.attempts,
            claimed.max_attempts,
        )

        handler: TaskHandler | None = None
        try:
            handler = self.registry.get(claimed.task_type)
            result = handler.execute(claimed.payload)
            handler.on_completed(claimed.payload, result)
        except Exception as exc:  # noqa: BLE001
            error_message = str(exc) or type(exc).__name__
            logger.warning("Task %s attempt failed: %s", claimed.task_id, error_message)
            outcome = self._handle_retry_or_fail(
                task=claimed,
                handler=handler,
                error_message=error_message,
            )
            if outcome.retried:
                summary.retried += 1
            elif outcome.failed:
                summary.failed += 1
            return

        try:
            completed = self.repository.complete_task(task_id=claimed.task_id)
        except StoreError:
            logger.exception("Store failure while completing task %s", claimed.task_id)
            raise
        if completed:
            summary.completed += 1
            logger.info("Task %s completed", claimed.task_id)
        else:
            logger.warning("Task %s left processing before completion", claimed.task_id)

    def _handle_retry_or_fail(
        self,
        *,
        task: BatchTaskView,
        handler: TaskHandler | None,
        error_message: str,
    ) -> RetryOutcome:
        try:
            if task.attempts < task.max_attempts:
                retried = self.repository.requeue_task(
                    task_id=task.task_id,
                    error_message=error_message,
                )
                if retried:
                    logger.info(
                        "Task %s returned to pending (%s/%s attempts used)",
                        task.task_id,
                        task.attempts,
                        task.max_attempts,
                    )
                return RetryOutcome(retried=retried, failed=False)

            failed = self.repository.fail_task(task_id=task.task_id, error_message=error_message)
        except StoreError:
            logger.exception("Store failure while recording outcome of task %s", task.task_id)
            raise

        if failed:
            logger.error(
                "Task %s failed permanently after %s attempt(s): %s",
                task.task_id,
                task.attempts,
                error_message,
            )
            if handler is not None:
                self._notify_failed(task=task, handler=handler, error_message=error_message)
        return RetryOutcome(retried=False, failed=failed)

    def _notify_failed(
        self,
        *,
        task: BatchTaskView,
        handler: TaskHandler,
        error_message: str,
    ) -> None:
        try:
            handler.on_failed(task.payload, error_message)
        except Exception:
            logger.exception("Failure write-back for task %s did not complete", task.task_id)
