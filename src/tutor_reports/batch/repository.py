"""Persistent queue repository for batch tasks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from sqlalchemy import func
from sqlalchemy import update as sa_update
from sqlmodel import Session, col, select

from tutor_reports.batch.models import (
    BatchTaskCreate,
    BatchTaskDetails,
    BatchTaskEventView,
    BatchTaskStatus,
    BatchTaskView,
    QueueStats,
)
from tutor_reports.storage.alembic_runner import upgrade_head
from tutor_reports.storage.common import (
    build_sqlite_engine,
    optional_utc,
    store_session,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from tutor_reports.storage.sqlmodel_models import BatchTask, BatchTaskEvent

_UPDATABLE_FIELDS = frozenset(
    {
        "priority",
        "status",
        "attempts",
        "max_attempts",
        "error_message",
        "processed_at",
    },
)


class BatchQueueRepository:
    """Queue persistence facade backed by SQLModel + SQLite."""

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def enqueue_task(self, payload: BatchTaskCreate) -> BatchTaskView:
        """Create a pending task."""

        if payload.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {payload.max_attempts}.")
        now = to_db_datetime(utc_now())
        with store_session(self.engine, operation="enqueue_task") as session:
            row = BatchTask(
                task_type=payload.task_type,
                payload_json=json.dumps(payload.payload, ensure_ascii=False, sort_keys=True),
                priority=payload.priority,
                status=BatchTaskStatus.PENDING.value,
                attempts=0,
                max_attempts=payload.max_attempts,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            if row.task_id is None:
                raise RuntimeError("Task id was not assigned on insert.")
            self._add_event(
                session=session,
                task_id=row.task_id,
                event_type="enqueued",
                status_from=None,
                status_to=BatchTaskStatus.PENDING,
                details={
                    "task_type": payload.task_type,
                    "priority": payload.priority,
                    "max_attempts": payload.max_attempts,
                },
            )
            session.commit()
            session.refresh(row)
            return _to_task_view(row)

    def fetch_eligible_pending(self) -> list[BatchTaskView]:
        """Pending tasks with attempts left, highest priority and oldest first."""

        with store_session(self.engine, operation="fetch_eligible_pending") as session:
            rows = session.exec(
                select(BatchTask)
                .where(
                    BatchTask.status == BatchTaskStatus.PENDING.value,
                    col(BatchTask.attempts) < col(BatchTask.max_attempts),
                )
                .order_by(
                    col(BatchTask.priority).asc(),
                    col(BatchTask.created_at).asc(),
                    col(BatchTask.task_id).asc(),
                ),
            ).all()
        return [_to_task_view(row) for row in rows]

    def claim_task(self, *, task_id: int) -> BatchTaskView | None:
        """Atomically move one pending task to processing.

        Returns ``None`` when the task is no longer claimable, for example when
        a concurrent caller already claimed it.
        """

        now = to_db_datetime(utc_now())
        with store_session(self.engine, operation="claim_task") as session:
            result = session.exec(
                sa_update(BatchTask)
                .where(
                    col(BatchTask.task_id) == task_id,
                    col(BatchTask.status) == BatchTaskStatus.PENDING.value,
                    col(BatchTask.attempts) < col(BatchTask.max_attempts),
                )
                .values(
                    status=BatchTaskStatus.PROCESSING.value,
                    attempts=col(BatchTask.attempts) + 1,
                    updated_at=now,
                ),
            )
            if result.rowcount != 1:
                session.rollback()
                return None

            claimed = session.exec(select(BatchTask).where(BatchTask.task_id == task_id)).one()
            self._add_event(
                session=session,
                task_id=task_id,
                event_type="claimed",
                status_from=BatchTaskStatus.PENDING,
                status_to=BatchTaskStatus.PROCESSING,
                details={"attempt": claimed.attempts, "max_attempts": claimed.max_attempts},
            )
            session.commit()
            session.refresh(claimed)
            return _to_task_view(claimed)

    def complete_task(self, *, task_id: int) -> bool:
        """Mark a processing task as completed."""

        now = to_db_datetime(utc_now())
        return self._transition_processing(
            task_id=task_id,
            status_to=BatchTaskStatus.COMPLETED,
            event_type="completed",
            values={"error_message": None, "processed_at": now, "updated_at": now},
            details={},
        )

    def requeue_task(self, *, task_id: int, error_message: str) -> bool:
        """Return a processing task to pending after a failed attempt."""

        now = to_db_datetime(utc_now())
        return self._transition_processing(
            task_id=task_id,
            status_to=BatchTaskStatus.PENDING,
            event_type="retry_scheduled",
            values={"error_message": error_message, "updated_at": now},
            details={"error_message": error_message},
        )

    def fail_task(self, *, task_id: int, error_message: str) -> bool:
        """Mark a processing task as permanently failed."""

        now = to_db_datetime(utc_now())
        return self._transition_processing(
            task_id=task_id,
            status_to=BatchTaskStatus.FAILED,
            event_type="failed",
            values={"error_message": error_message, "processed_at": now, "updated_at": now},
            details={"error_message": error_message},
        )

    def update_task(self, task_id: int, **fields: Any) -> BatchTaskView | None:
        """Apply a partial update; returns ``None`` when the task does not exist."""

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        if isinstance(values.get("status"), BatchTaskStatus):
            values["status"] = values["status"].value
        if values.get("processed_at") is not None:
            values["processed_at"] = to_db_datetime(values["processed_at"])
        values["updated_at"] = to_db_datetime(utc_now())

        with store_session(self.engine, operation="update_task") as session:
            result = session.exec(
                sa_update(BatchTask).where(col(BatchTask.task_id) == task_id).values(**values),
            )
            if result.rowcount != 1:
                session.rollback()
                return None
            session.commit()
            row = session.exec(select(BatchTask).where(BatchTask.task_id == task_id)).one()
            return _to_task_view(row)

    def get_task(self, *, task_id: int) -> BatchTaskView | None:
        with store_session(self.engine, operation="get_task") as session:
            row = session.exec(select(BatchTask).where(BatchTask.task_id == task_id)).one_or_none()
        return _to_task_view(row) if row is not None else None

    def list_tasks(
        self,
        *,
        status: BatchTaskStatus | None = None,
        limit: int = 50,
    ) -> list[BatchTaskView]:
        """List recent tasks, optionally filtered by status."""

        with store_session(self.engine, operation="list_tasks") as session:
            statement = select(BatchTask).order_by(
                col(BatchTask.created_at).desc(),
                col(BatchTask.task_id).desc(),
            )
            if status is not None:
                statement = statement.where(BatchTask.status == status.value)
            rows = session.exec(statement.limit(limit)).all()
        return [_to_task_view(row) for row in rows]

    def get_task_details(self, *, task_id: int) -> BatchTaskDetails | None:
        """Return task details with event stream."""

        with store_session(self.engine, operation="get_task_details") as session:
            task = session.exec(
                select(BatchTask).where(BatchTask.task_id == task_id),
            ).one_or_none()
            if task is None:
                return None

            event_rows = session.exec(
                select(BatchTaskEvent)
                .where(BatchTaskEvent.task_id == task_id)
                .order_by(col(BatchTaskEvent.created_at).asc(), col(BatchTaskEvent.id).asc()),
            ).all()

        events: list[BatchTaskEventView] = []
        for row in event_rows:
            details = {}
            if row.details_json:
                parsed = json.loads(row.details_json)
                if isinstance(parsed, dict):
                    details = parsed
            events.append(
                BatchTaskEventView(
                    event_id=row.id or 0,
                    task_id=row.task_id,
                    event_type=row.event_type,
                    status_from=(
                        BatchTaskStatus(row.status_from) if row.status_from is not None else None
                    ),
                    status_to=(
                        BatchTaskStatus(row.status_to) if row.status_to is not None else None
                    ),
                    created_at=to_utc_aware_datetime(row.created_at),
                    details=details,
                ),
            )

        return BatchTaskDetails(task=_to_task_view(task), events=events)

    def queue_stats(self) -> QueueStats:
        """Pending/processing counts and the latest completion time."""

        with store_session(self.engine, operation="queue_stats") as session:
            counts = dict(
                session.exec(
                    select(BatchTask.status, func.count())
                    .where(
                        col(BatchTask.status).in_(
                            [BatchTaskStatus.PENDING.value, BatchTaskStatus.PROCESSING.value],
                        ),
                    )
                    .group_by(BatchTask.status),
                ).all(),
            )
            last_processed = session.exec(
                select(func.max(BatchTask.processed_at)).where(
                    BatchTask.status == BatchTaskStatus.COMPLETED.value,
                ),
            ).one()

        return QueueStats(
            pending_count=int(counts.get(BatchTaskStatus.PENDING.value, 0)),
            processing_count=int(counts.get(BatchTaskStatus.PROCESSING.value, 0)),
            last_processed_at=optional_utc(last_processed),
        )

    def _transition_processing(  # noqa: PLR0913
        self,
        *,
        task_id: int,
        status_to: BatchTaskStatus,
        event_type: str,
        values: dict[str, object],
        details: dict[str, object],
    ) -> bool:
        with store_session(self.engine, operation=f"{event_type} task") as session:
            result = session.exec(
                sa_update(BatchTask)
                .where(
                    col(BatchTask.task_id) == task_id,
                    col(BatchTask.status) == BatchTaskStatus.PROCESSING.value,
                )
                .values(status=status_to.value, **values),
            )
            if result.rowcount != 1:
                session.rollback()
                return False
            self._add_event(
                session=session,
                task_id=task_id,
                event_type=event_type,
                status_from=BatchTaskStatus.PROCESSING,
                status_to=status_to,
                details=details,
            )
            session.commit()
            return True

    def _add_event(  # noqa: PLR0913
        self,
        *,
        session: Session,
        task_id: int,
        event_type: str,
        status_from: BatchTaskStatus | None,
        status_to: BatchTaskStatus | None,
        details: dict[str, object],
    ) -> None:
        session.add(
            BatchTaskEvent(
                task_id=task_id,
                event_type=event_type,
                status_from=status_from.value if status_from is not None else None,
                status_to=status_to.value if status_to is not None else None,
                details_json=json.dumps(details, ensure_ascii=False, sort_keys=True)
                if details
                else None,
                created_at=to_db_datetime(utc_now()),
            ),
        )


def _to_task_view(row: BatchTask) -> BatchTaskView:
    payload = json.loads(row.payload_json) if row.payload_json else {}
    return BatchTaskView(
        task_id=row.task_id or 0,
        task_type=row.task_type,
        payload=payload if isinstance(payload, dict) else {},
        priority=row.priority,
        status=BatchTaskStatus(row.status),
        attempts=row.attempts,
        max_attempts=row.max_attempts,
        error_message=row.error_message,
        created_at=to_utc_aware_datetime(row.created_at),
        updated_at=to_utc_aware_datetime(row.updated_at),
        processed_at=optional_utc(row.processed_at),
    )
