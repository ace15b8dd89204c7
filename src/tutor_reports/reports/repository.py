"""Repository for students and daily reports."""

from __future__ import annotations

from pathlib import Path

from sqlmodel import select

from tutor_reports.reports.models import (
    AiProcessingStatus,
    DailyReportView,
    ReportOutcome,
    ReportSubmit,
    StudentCreate,
    StudentView,
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
from tutor_reports.storage.sqlmodel_models import DailyReport, Student


class ReportRepository:
    """Student and report persistence facade."""

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def close(self) -> None:
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.db_path)

    def create_student(self, payload: StudentCreate) -> StudentView:
        if not payload.name.strip():
            raise ValueError("Student name must not be empty.")
        with store_session(self.engine, operation="create_student") as session:
            row = Student(
                name=payload.name.strip(),
                grade=payload.grade,
                subject=payload.subject,
                phone=payload.phone,
                parent_phone=payload.parent_phone,
                created_at=to_db_datetime(utc_now()),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_student_view(row)

    def get_student(self, *, student_id: int) -> StudentView | None:
        with store_session(self.engine, operation="get_student") as session:
            row = session.exec(
                select(Student).where(Student.student_id == student_id),
            ).one_or_none()
        return _to_student_view(row) if row is not None else None

    def create_report(self, payload: ReportSubmit) -> DailyReportView:
        """Insert a report awaiting generation."""

        with store_session(self.engine, operation="create_report") as session:
            row = DailyReport(
                student_id=payload.student_id,
                class_date=payload.class_date,
                lesson_topics=payload.lesson_topics,
                homework_score=payload.homework_score,
                student_notes=payload.student_notes,
                next_assignment=payload.next_assignment,
                ai_processing_status=AiProcessingStatus.PENDING.value,
                created_at=to_db_datetime(utc_now()),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_report_view(row)

    def get_report(self, *, report_id: int) -> DailyReportView | None:
        with store_session(self.engine, operation="get_report") as session:
            row = session.exec(
                select(DailyReport).where(DailyReport.report_id == report_id),
            ).one_or_none()
        return _to_report_view(row) if row is not None else None

    def set_report_outcome(
        self,
        report_id: int,
        outcome: ReportOutcome,
    ) -> DailyReportView | None:
        """Apply generation status and text; ``None`` when the report is gone."""

        with store_session(self.engine, operation="set_report_outcome") as session:
            row = session.exec(
                select(DailyReport).where(DailyReport.report_id == report_id),
            ).one_or_none()
            if row is None:
                return None
            row.ai_processing_status = outcome.ai_processing_status.value
            if outcome.ai_report is not None:
                row.ai_report = outcome.ai_report
            if outcome.ai_processed_at is not None:
                row.ai_processed_at = to_db_datetime(outcome.ai_processed_at)
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_report_view(row)


def _to_student_view(row: Student) -> StudentView:
    return StudentView(
        student_id=row.student_id or 0,
        name=row.name,
        grade=row.grade,
        subject=row.subject,
        phone=row.phone,
        parent_phone=row.parent_phone,
        created_at=to_utc_aware_datetime(row.created_at),
    )


def _to_report_view(row: DailyReport) -> DailyReportView:
    return DailyReportView(
        report_id=row.report_id or 0,
        student_id=row.student_id,
        class_date=row.class_date,
        lesson_topics=row.lesson_topics,
        homework_score=row.homework_score,
        student_notes=row.student_notes,
        next_assignment=row.next_assignment,
        ai_report=row.ai_report,
        ai_processing_status=AiProcessingStatus(row.ai_processing_status),
        ai_processed_at=optional_utc(row.ai_processed_at),
        created_at=to_utc_aware_datetime(row.created_at),
    )
