"""Report submission: persist the lesson and queue its generation."""

from __future__ import annotations

import logging

from tutor_reports.batch.engine import BatchQueueEngine
from tutor_reports.reports.models import DailyReportView, ReportSubmit
from tutor_reports.reports.repository import ReportRepository

logger = logging.getLogger(__name__)


class ReportService:
    """Producer side of the batch queue."""

    def __init__(self, *, reports: ReportRepository, engine: BatchQueueEngine) -> None:
        self.reports = reports
        self.engine = engine

    def submit_report(self, payload: ReportSubmit) -> DailyReportView:
        """Create a report with pending AI status and enqueue its generation.

        Returns as soon as the task is queued; the generated text appears on
        the report after a sweep processes it.
        """

        if payload.homework_score is not None and not 0 <= payload.homework_score <= 100:
            raise ValueError(f"homework_score must be within 0..100, got {payload.homework_score}.")
        student = self.reports.get_student(student_id=payload.student_id)
        if student is None:
            raise ValueError(f"Student not found: {payload.student_id}")

        report = self.reports.create_report(payload)
        task_id = self.engine.add_report_generation_task(
            report.report_id,
            student={"name": student.name, "grade": student.grade, "subject": student.subject},
            report={
                "class_date": report.class_date.isoformat(),
                "lesson_topics": report.lesson_topics,
                "homework_score": report.homework_score,
                "student_notes": report.student_notes,
                "next_assignment": report.next_assignment,
            },
        )
        logger.info("Report %s submitted; generation task %s queued", report.report_id, task_id)
        return report
