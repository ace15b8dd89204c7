"""Generation client contract and shared value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

REPORT_FALLBACK_TEXT = "보고서 생성에 실패했습니다."


class GenerationError(RuntimeError):
    """Raised when the generation endpoint cannot produce a usable answer."""

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


@dataclass(slots=True)
class ReportGenerationInput:
    """Lesson facts rendered into the parent-facing report prompt."""

    student_name: str
    grade: str
    subject: str
    class_date: str
    lesson_topics: str
    homework_score: int | None
    student_notes: str
    next_assignment: str

    @classmethod
    def from_payload(cls, student: dict[str, Any], report: dict[str, Any]) -> ReportGenerationInput:
        """Build input from a ``report_generation`` task payload."""

        name = student.get("name")
        if not name:
            raise ValueError("Report generation payload is missing student name.")
        score = report.get("homework_score")
        return cls(
            student_name=str(name),
            grade=str(student.get("grade") or ""),
            subject=str(student.get("subject") or ""),
            class_date=str(report.get("class_date") or ""),
            lesson_topics=str(report.get("lesson_topics") or ""),
            homework_score=int(score) if score is not None else None,
            student_notes=str(report.get("student_notes") or ""),
            next_assignment=str(report.get("next_assignment") or ""),
        )


@dataclass(slots=True)
class StudentAnalysis:
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


class GenerationClient(Protocol):
    def generate_report(self, data: ReportGenerationInput) -> str: ...

    def analyze_student(self, data: dict[str, Any]) -> StudentAnalysis: ...

    def close(self) -> None: ...
