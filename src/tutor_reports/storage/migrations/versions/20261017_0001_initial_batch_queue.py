"""Initial students, daily reports, and batch queue schema."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("grade", sa.String(), nullable=True),
        sa.Column("subject", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("parent_phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("student_id"),
    )
    op.create_index("ix_students_name", "students", ["name"], unique=False)

    op.create_table(
        "daily_reports",
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("class_date", sa.Date(), nullable=False),
        sa.Column("lesson_topics", sa.Text(), nullable=True),
        sa.Column("homework_score", sa.Integer(), nullable=True),
        sa.Column("student_notes", sa.Text(), nullable=True),
        sa.Column("next_assignment", sa.Text(), nullable=True),
        sa.Column("ai_report", sa.Text(), nullable=True),
        sa.Column(
            "ai_processing_status",
            sa.String(),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("ai_processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["student_id"], ["students.student_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("report_id"),
    )
    op.create_index(
        "ix_daily_reports_student_id",
        "daily_reports",
        ["student_id"],
        unique=False,
    )
    op.create_index(
        "ix_daily_reports_ai_processing_status",
        "daily_reports",
        ["ai_processing_status"],
        unique=False,
    )

    op.create_table(
        "batch_tasks",
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("task_type", sa.String(), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("task_id"),
    )
    op.create_index("ix_batch_tasks_task_type", "batch_tasks", ["task_type"], unique=False)
    op.create_index(
        "idx_batch_tasks_queue",
        "batch_tasks",
        ["status", "priority", "created_at"],
        unique=False,
    )

    op.create_table(
        "batch_task_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("status_from", sa.String(), nullable=True),
        sa.Column("status_to", sa.String(), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["batch_tasks.task_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_batch_task_events_task_time",
        "batch_task_events",
        ["task_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_batch_task_events_task_time", table_name="batch_task_events")
    op.drop_table("batch_task_events")
    op.drop_index("idx_batch_tasks_queue", table_name="batch_tasks")
    op.drop_index("ix_batch_tasks_task_type", table_name="batch_tasks")
    op.drop_table("batch_tasks")
    op.drop_index("ix_daily_reports_ai_processing_status", table_name="daily_reports")
    op.drop_index("ix_daily_reports_student_id", table_name="daily_reports")
    op.drop_table("daily_reports")
    op.drop_index("ix_students_name", table_name="students")
    op.drop_table("students")
