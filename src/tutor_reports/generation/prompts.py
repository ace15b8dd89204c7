"""Fixed prompt templates for the chat-completions backend."""

from __future__ import annotations

import json
from typing import Any

from tutor_reports.generation.base import ReportGenerationInput

REPORT_SYSTEM_PROMPT = (
    "당신은 한국의 전문 과외 선생님입니다. 학부모님께 보낼 정중하고 상세한 수업 보고서를 "
    "작성하는 전문가입니다. 항상 JSON 형식으로 응답해주세요."
)

ANALYSIS_SYSTEM_PROMPT = (
    "당신은 교육 전문가입니다. 학생의 학습 데이터를 분석하여 정확하고 도움이 되는 피드백을 "
    "제공합니다."
)

_REPORT_TEMPLATE = """다음 수업 정보를 바탕으로 학부모님께 보낼 전문적이고 정중한 한국어 보고서를 작성해주세요.

학생 정보:
- 이름: {student_name}
- 학년: {grade}
- 과목: {subject}
- 수업일: {class_date}

수업 내용:
- 학습 주제: {lesson_topics}
- 숙제 점수: {homework_score}
- 수업 중 관찰사항: {student_notes}
- 다음 과제: {next_assignment}

JSON 형식으로 응답해주세요: {{"report": "보고서 내용"}}"""

_ANALYSIS_TEMPLATE = """다음 학생 데이터를 분석하여 학습 진도와 성과를 평가해주세요.

학생 데이터: {data}

분석 결과를 다음 JSON 형식으로 제공해주세요:
{{"strengths": [...], "improvements": [...], "recommendations": [...]}}"""


def build_report_prompt(data: ReportGenerationInput) -> str:
    score = f"{data.homework_score}점" if data.homework_score is not None else "-"
    return _REPORT_TEMPLATE.format(
        student_name=data.student_name,
        grade=data.grade or "-",
        subject=data.subject or "-",
        class_date=data.class_date or "-",
        lesson_topics=data.lesson_topics or "-",
        homework_score=score,
        student_notes=data.student_notes or "-",
        next_assignment=data.next_assignment or "-",
    )


def build_analysis_prompt(data: dict[str, Any]) -> str:
    return _ANALYSIS_TEMPLATE.format(data=json.dumps(data, ensure_ascii=False, sort_keys=True))
