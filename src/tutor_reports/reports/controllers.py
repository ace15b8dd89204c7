"""Controllers for student and report CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

from tutor_reports.batch.runtime import open_runtime
from tutor_reports.config import Settings
from tutor_reports.reports.models import ReportSubmit, StudentCreate
from tutor_reports.reports.service import ReportService


@dataclass(slots=True)
class StudentAddCommand:
    """CLI input for student creation."""

    db_path: Path | None
    name: str
    grade: str | None
    subject: str | None
    phone: str | None
    parent_phone: str | None


@dataclass(slots=True)
class ReportSubmitCommand:
    """CLI input for lesson report submission."""

    db_path: Path | None
    student_id: int
    class_date: date
    lesson_topics: str | None
    homework_score: int | None
    student_notes: str | None
    next_assignment: str | None


@dataclass(slots=True)
class ReportShowCommand:
    db_path: Path | None
    report_id: int


class ReportsCliController:
    """Coordinates student and report CLI operations."""

    def add_student(self, command: StudentAddCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with open_runtime(settings) as runtime:
            student = runtime.reports.create_student(
                StudentCreate(
                    name=command.name,
                    grade=command.grade,
                    subject=command.subject,
                    phone=command.phone,
                    parent_phone=command.parent_phone,
                ),
            )
        return [f"Student created: student_id={student.student_id} name={student.name}"]

    def submit_report(self, command: ReportSubmitCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with open_runtime(settings) as runtime:
            service = ReportService(reports=runtime.reports, engine=runtime.engine)
            report = service.submit_report(
                ReportSubmit(
                    student_id=command.student_id,
                    class_date=command.class_date,
                    lesson_topics=command.lesson_topics,
                    homework_score=command.homework_score,
                    student_notes=command.student_notes,
                    next_assignment=command.next_assignment,
                ),
            )
        return [
            "Report submitted: "
            f"report_id={report.report_id} ai_status={report.ai_processing_status.value}",
        ]

    def show_report(self, command: ReportShowCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with open_runtime(settings) as runtime:
            report = runtime.reports.get_report(report_id=command.report_id)
        if report is None:
            return [f"Report not found: {command.report_id}"]

        processed = report.ai_processed_at.isoformat() if report.ai_processed_at else "-"
        score = report.homework_score if report.homework_score is not None else "-"
        lines = [
            f"Report: {report.report_id}",
            f"Student: {report.student_id}",
            f"Class date: {report.class_date.isoformat()}",
            f"Topics: {report.lesson_topics or '-'}",
            f"Homework score: {score}",
            f"AI status: {report.ai_processing_status.value}",
            f"AI processed at: {processed}",
        ]
        if report.ai_report:
            lines.append("AI report:")
            lines.extend(f"  {line}" for line in report.ai_report.splitlines())
        return lines
