"""SQLModel ORM tables for reports and the batch queue."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Text
from sqlmodel import Field, SQLModel


class Student(SQLModel, table=True):
    __tablename__ = "students"  # type: ignore[bad-override]

    student_id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    grade: str | None = None
    subject: str | None = None
    phone: str | None = None
    parent_phone: str | None = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class DailyReport(SQLModel, table=True):
    __tablename__ = "daily_reports"  # type: ignore[bad-override]

    report_id: int | None = Field(default=None, primary_key=True)
    student_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("students.student_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    class_date: date = Field(sa_column=Column(Date, nullable=False))
    lesson_topics: str | None = Field(default=None, sa_column=Column(Text))
    homework_score: int | None = None
    student_notes: str | None = Field(default=None, sa_column=Column(Text))
    next_assignment: str | None = Field(default=None, sa_column=Column(Text))
    ai_report: str | None = Field(default=None, sa_column=Column(Text))
    ai_processing_status: str = Field(default="pending", index=True)
    ai_processed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class BatchTask(SQLModel, table=True):
    __tablename__ = "batch_tasks"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_batch_tasks_queue", "status", "priority", "created_at"),)

    task_id: int | None = Field(default=None, primary_key=True)
    task_type: str = Field(index=True)
    payload_json: str = Field(sa_column=Column(Text, nullable=False))
    priority: int = 2
    status: str
    attempts: int = 0
    max_attempts: int = 3
    error_message: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    processed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )


class BatchTaskEvent(SQLModel, table=True):
    __tablename__ = "batch_task_events"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_batch_task_events_task_time", "task_id", "created_at"),)

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("batch_tasks.task_id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    event_type: str
    status_from: str | None = None
    status_to: str | None = None
    details_json: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
