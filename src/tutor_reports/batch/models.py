"""Domain models for the report batch queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_PRIORITY = 2
DEFAULT_MAX_ATTEMPTS = 3


class BatchTaskStatus(str, Enum):
    """Durable task lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({BatchTaskStatus.COMPLETED, BatchTaskStatus.FAILED})


class TaskType(str, Enum):
    """Built-in task types. The registry accepts any other string as well."""

    REPORT_GENERATION = "report_generation"
    STUDENT_ANALYSIS = "student_analysis"


@dataclass(slots=True)
class BatchTaskCreate:
    """Input payload for enqueuing a batch task."""

    task_type: str
    payload: dict[str, Any]
    priority: int = DEFAULT_PRIORITY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


@dataclass(slots=True)
class BatchTaskView:
    """Readable task view for CLI and engine logic."""

    task_id: int
    task_type: str
    payload: dict[str, Any]
    priority: int
    status: BatchTaskStatus
    attempts: int
    max_attempts: int
    error_message: str | None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(slots=True)
class BatchTaskEventView:
    """Task event entry for audit trail."""

    event_id: int
    task_id: int
    event_type: str
    status_from: BatchTaskStatus | None
    status_to: BatchTaskStatus | None
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BatchTaskDetails:
    """Task details with event stream."""

    task: BatchTaskView
    events: list[BatchTaskEventView]


@dataclass(slots=True)
class QueueStats:
    """Operational snapshot of the queue."""

    pending_count: int
    processing_count: int
    last_processed_at: datetime | None


@dataclass(slots=True)
class SweepSummary:
    """Aggregate sweep counters for CLI reporting."""

    skipped: bool = False
    eligible: int = 0
    claimed: int = 0
    completed: int = 0
    retried: int = 0
    failed: int = 0
    skipped_claims: int = 0
