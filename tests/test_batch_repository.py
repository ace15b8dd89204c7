from __future__ import annotations

import allure
import pytest

from tutor_reports.batch.models import BatchTaskCreate, BatchTaskStatus
from tutor_reports.batch.repository import BatchQueueRepository

pytestmark = [
    allure.epic("Batch Queue"),
    allure.feature("Task Store"),
]


def _enqueue(
    repository: BatchQueueRepository,
    *,
    priority: int = 2,
    max_attempts: int = 3,
    marker: str = "x",
) -> int:
    task = repository.enqueue_task(
        BatchTaskCreate(
            task_type="report_generation",
            payload={"marker": marker},
            priority=priority,
            max_attempts=max_attempts,
        ),
    )
    return task.task_id


def test_enqueue_creates_pending_task_with_zero_attempts(
    queue_repository: BatchQueueRepository,
) -> None:
    task = queue_repository.enqueue_task(
        BatchTaskCreate(task_type="student_analysis", payload={"student_id": 7, "note": "수학"}),
    )

    assert task.status == BatchTaskStatus.PENDING
    assert task.attempts == 0
    assert task.max_attempts == 3
    assert task.priority == 2
    assert task.payload == {"student_id": 7, "note": "수학"}
    assert task.processed_at is None
    assert task.created_at.tzinfo is not None


def test_enqueue_rejects_non_positive_max_attempts(
    queue_repository: BatchQueueRepository,
) -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        queue_repository.enqueue_task(
            BatchTaskCreate(task_type="report_generation", payload={}, max_attempts=0),
        )


def test_eligible_tasks_are_ordered_by_priority_then_creation(
    queue_repository: BatchQueueRepository,
) -> None:
    low = _enqueue(queue_repository, priority=2, marker="low")
    first_high = _enqueue(queue_repository, priority=1, marker="high-1")
    second_high = _enqueue(queue_repository, priority=1, marker="high-2")

    eligible = queue_repository.fetch_eligible_pending()

    assert [task.task_id for task in eligible] == [first_high, second_high, low]


def test_eligible_tasks_exclude_exhausted_and_non_pending(
    queue_repository: BatchQueueRepository,
) -> None:
    exhausted = _enqueue(queue_repository)
    claimed = _enqueue(queue_repository)
    ready = _enqueue(queue_repository)
    queue_repository.update_task(exhausted, attempts=3)
    assert queue_repository.claim_task(task_id=claimed) is not None

    eligible = queue_repository.fetch_eligible_pending()

    assert [task.task_id for task in eligible] == [ready]
    assert queue_repository.claim_task(task_id=exhausted) is None


def test_claim_is_conditional_and_increments_attempts(
    queue_repository: BatchQueueRepository,
) -> None:
    task_id = _enqueue(queue_repository)

    claimed = queue_repository.claim_task(task_id=task_id)
    assert claimed is not None
    assert claimed.status == BatchTaskStatus.PROCESSING
    assert claimed.attempts == 1

    assert queue_repository.claim_task(task_id=task_id) is None
    current = queue_repository.get_task(task_id=task_id)
    assert current is not None
    assert current.attempts == 1


def test_terminal_transitions_require_processing_status(
    queue_repository: BatchQueueRepository,
) -> None:
    task_id = _enqueue(queue_repository)

    assert queue_repository.complete_task(task_id=task_id) is False
    assert queue_repository.fail_task(task_id=task_id, error_message="boom") is False

    assert queue_repository.claim_task(task_id=task_id) is not None
    assert queue_repository.complete_task(task_id=task_id) is True
    assert queue_repository.complete_task(task_id=task_id) is False
    assert queue_repository.claim_task(task_id=task_id) is None

    task = queue_repository.get_task(task_id=task_id)
    assert task is not None
    assert task.status == BatchTaskStatus.COMPLETED
    assert task.is_terminal
    assert task.processed_at is not None
    assert task.error_message is None


def test_requeue_keeps_error_and_fail_sets_processed_at(
    queue_repository: BatchQueueRepository,
) -> None:
    task_id = _enqueue(queue_repository, max_attempts=2)

    queue_repository.claim_task(task_id=task_id)
    assert queue_repository.requeue_task(task_id=task_id, error_message="timeout") is True
    requeued = queue_repository.get_task(task_id=task_id)
    assert requeued is not None
    assert requeued.status == BatchTaskStatus.PENDING
    assert requeued.error_message == "timeout"
    assert requeued.processed_at is None

    queue_repository.claim_task(task_id=task_id)
    assert queue_repository.fail_task(task_id=task_id, error_message="still down") is True
    failed = queue_repository.get_task(task_id=task_id)
    assert failed is not None
    assert failed.status == BatchTaskStatus.FAILED
    assert failed.attempts == 2
    assert failed.error_message == "still down"
    assert failed.processed_at is not None


def test_task_events_record_each_transition(queue_repository: BatchQueueRepository) -> None:
    task_id = _enqueue(queue_repository)
    queue_repository.claim_task(task_id=task_id)
    queue_repository.requeue_task(task_id=task_id, error_message="first")
    queue_repository.claim_task(task_id=task_id)
    queue_repository.complete_task(task_id=task_id)

    details = queue_repository.get_task_details(task_id=task_id)

    assert details is not None
    assert [event.event_type for event in details.events] == [
        "enqueued",
        "claimed",
        "retry_scheduled",
        "claimed",
        "completed",
    ]
    assert details.events[0].status_from is None
    assert details.events[2].details == {"error_message": "first"}
    assert details.events[3].details == {"attempt": 2, "max_attempts": 3}
    assert queue_repository.get_task_details(task_id=9999) is None


def test_update_task_applies_partial_fields(queue_repository: BatchQueueRepository) -> None:
    task_id = _enqueue(queue_repository)

    updated = queue_repository.update_task(task_id, priority=0, error_message="manual note")

    assert updated is not None
    assert updated.priority == 0
    assert updated.error_message == "manual note"
    assert updated.status == BatchTaskStatus.PENDING
    assert queue_repository.update_task(9999, priority=1) is None
    with pytest.raises(ValueError, match="Unsupported task fields: task_type"):
        queue_repository.update_task(task_id, task_type="other")


def test_list_tasks_is_newest_first_with_status_filter(
    queue_repository: BatchQueueRepository,
) -> None:
    first = _enqueue(queue_repository)
    second = _enqueue(queue_repository)
    third = _enqueue(queue_repository)
    queue_repository.claim_task(task_id=second)

    assert [task.task_id for task in queue_repository.list_tasks()] == [third, second, first]
    assert [task.task_id for task in queue_repository.list_tasks(limit=2)] == [third, second]
    pending = queue_repository.list_tasks(status=BatchTaskStatus.PENDING)
    assert [task.task_id for task in pending] == [third, first]


def test_queue_stats_counts_and_last_processed(queue_repository: BatchQueueRepository) -> None:
    empty = queue_repository.queue_stats()
    assert (empty.pending_count, empty.processing_count, empty.last_processed_at) == (0, 0, None)

    done = _enqueue(queue_repository)
    running = _enqueue(queue_repository)
    _enqueue(queue_repository)
    queue_repository.claim_task(task_id=done)
    queue_repository.complete_task(task_id=done)
    queue_repository.claim_task(task_id=running)

    stats = queue_repository.queue_stats()

    assert stats.pending_count == 1
    assert stats.processing_count == 1
    completed = queue_repository.get_task(task_id=done)
    assert completed is not None
    assert stats.last_processed_at == completed.processed_at
