"""Deterministic local generation backend."""

from __future__ import annotations

from typing import Any

from tutor_reports.generation.base import ReportGenerationInput, StudentAnalysis


class EchoGenerationClient:
    """Builds report text from the input without any network call."""

    def generate_report(self, data: ReportGenerationInput) -> str:
        lines = [f"{data.student_name} 학생 수업 보고서 ({data.class_date or '-'})"]
        if data.subject:
            lines.append(f"과목: {data.subject}")
        if data.lesson_topics:
            lines.append(f"학습 주제: {data.lesson_topics}")
        if data.homework_score is not None:
            lines.append(f"숙제 점수: {data.homework_score}점")
        if data.student_notes:
            lines.append(f"관찰사항: {data.student_notes}")
        if data.next_assignment:
            lines.append(f"다음 과제: {data.next_assignment}")
        return "\n".join(lines)

    def analyze_student(self, data: dict[str, Any]) -> StudentAnalysis:
        return StudentAnalysis(
            strengths=[f"{key}: {value}" for key, value in sorted(data.items())],
        )

    def close(self) -> None:
        return None
