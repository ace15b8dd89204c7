"""Task handlers and the type-to-handler registry."""

from __future__ import annotations

import logging
from typing import Any

from tutor_reports.batch.models import TaskType
from tutor_reports.generation.base import GenerationClient, ReportGenerationInput
from tutor_reports.reports.models import AiProcessingStatus, ReportOutcome
from tutor_reports.reports.repository import ReportRepository
from tutor_reports.storage.common import utc_now

logger = logging.getLogger(__name__)


class UnknownTaskTypeError(LookupError):
    """No handler is registered for the task type."""


class TaskHandler:
    """Base handler.

    ``execute`` does the work and returns a result; ``on_completed`` and
    ``on_failed`` write the outcome back to the related entity. Hooks default
    to no-ops.
    """

    def execute(self, payload: dict[str, Any]) -> object:
        raise NotImplementedError

    def on_completed(self, payload: dict[str, Any], result: object) -> None:  # noqa: ARG002
        return None

    def on_failed(self, payload: dict[str, Any], error_message: str) -> None:  # noqa: ARG002
        return None


class HandlerRegistry:
    """Maps task type strings to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, TaskHandler] = {}

    def register(self, task_type: str, handler: TaskHandler) -> None:
        if not task_type:
            raise ValueError("Task type must not be empty.")
        self._handlers[task_type] = handler

    def get(self, task_type: str) -> TaskHandler:
        handler = self._handlers.get(task_type)
        if handler is None:
            raise UnknownTaskTypeError(f"Unknown task type: {task_type}")
        return handler

    def task_types(self) -> list[str]:
        return sorted(self._handlers)


class ReportGenerationHandler(TaskHandler):
    """Generates the parent-facing report text and stores it on the report."""

    def __init__(self, *, client: GenerationClient, reports: ReportRepository) -> None:
        self.client = client
        self.reports = reports

    def execute(self, payload: dict[str, Any]) -> str:
        _report_id(payload)
        data = ReportGenerationInput.from_payload(
            student=payload.get("student") or {},
            report=payload.get("report") or {},
        )
        return self.client.generate_report(data)

    def on_completed(self, payload: dict[str, Any], result: object) -> None:
        report_id = _report_id(payload)
        updated = self.reports.set_report_outcome(
            report_id,
            ReportOutcome(
                ai_processing_status=AiProcessingStatus.COMPLETED,
                ai_report=str(result),
                ai_processed_at=utc_now(),
            ),
        )
        if updated is None:
            logger.warning("Report %s no longer exists; generated text dropped", report_id)

    def on_failed(self, payload: dict[str, Any], error_message: str) -> None:
        report_id = payload.get("report_id")
        if report_id is None:
            return
        updated = self.reports.set_report_outcome(
            int(report_id),
            ReportOutcome(ai_processing_status=AiProcessingStatus.FAILED),
        )
        if updated is None:
            logger.warning("Report %s no longer exists; failure not mirrored", report_id)
        else:
            logger.info("Report %s marked failed: %s", report_id, error_message)


class StudentAnalysisHandler(TaskHandler):
    """Runs a progress analysis; the result is only logged."""

    def __init__(self, *, client: GenerationClient) -> None:
        self.client = client

    def execute(self, payload: dict[str, Any]) -> object:
        analysis_data = payload.get("analysis_data")
        if not isinstance(analysis_data, dict):
            raise ValueError("Student analysis payload is missing analysis_data.")
        analysis = self.client.analyze_student(analysis_data)
        logger.info(
            "Student %s analysis: strengths=%s improvements=%s recommendations=%s",
            payload.get("student_id"),
            analysis.strengths,
            analysis.improvements,
            analysis.recommendations,
        )
        return analysis


def build_default_registry(
    *,
    client: GenerationClient,
    reports: ReportRepository,
) -> HandlerRegistry:
    """Registry with the built-in report and analysis handlers."""

    registry = HandlerRegistry()
    registry.register(
        TaskType.REPORT_GENERATION.value,
        ReportGenerationHandler(client=client, reports=reports),
    )
    registry.register(TaskType.STUDENT_ANALYSIS.value, StudentAnalysisHandler(client=client))
    return registry


def _report_id(payload: dict[str, Any]) -> int:
    report_id = payload.get("report_id")
    if report_id is None:
        raise ValueError("Report generation payload is missing report_id.")
    return int(report_id)
