"""Domain models for students and daily lesson reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class AiProcessingStatus(str, Enum):
    """Generation status mirrored on each report."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class StudentCreate:
    name: str
    grade: str | None = None
    subject: str | None = None
    phone: str | None = None
    parent_phone: str | None = None


@dataclass(slots=True)
class StudentView:
    student_id: int
    name: str
    grade: str | None
    subject: str | None
    phone: str | None
    parent_phone: str | None
    created_at: datetime


@dataclass(slots=True)
class ReportSubmit:
    """Lesson facts entered by the tutor."""

    student_id: int
    class_date: date
    lesson_topics: str | None = None
    homework_score: int | None = None
    student_notes: str | None = None
    next_assignment: str | None = None


@dataclass(slots=True)
class DailyReportView:
    report_id: int
    student_id: int
    class_date: date
    lesson_topics: str | None
    homework_score: int | None
    student_notes: str | None
    next_assignment: str | None
    ai_report: str | None
    ai_processing_status: AiProcessingStatus
    ai_processed_at: datetime | None
    created_at: datetime


@dataclass(slots=True)
class ReportOutcome:
    """Write-back applied to a report by batch handlers."""

    ai_processing_status: AiProcessingStatus
    ai_report: str | None = None
    ai_processed_at: datetime | None = None
