"""OpenAI-compatible chat-completions client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from tutor_reports.generation.base import (
    REPORT_FALLBACK_TEXT,
    GenerationError,
    ReportGenerationInput,
    StudentAnalysis,
)
from tutor_reports.generation.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    REPORT_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_report_prompt,
)

logger = logging.getLogger(__name__)

REPORT_TEMPERATURE = 0.7
ANALYSIS_TEMPERATURE = 0.5
_TRANSIENT_STATUS_CODES = frozenset({408, 429})


class OpenAIChatClient:
    """Calls ``{api_base}/chat/completions`` with JSON-object responses."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        api_key: str,
        api_base: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout_seconds: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self._client = httpx.Client(
            base_url=api_base.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def generate_report(self, data: ReportGenerationInput) -> str:
        content = self._complete(
            system_prompt=REPORT_SYSTEM_PROMPT,
            user_prompt=build_report_prompt(data),
            temperature=REPORT_TEMPERATURE,
        )
        report = content.get("report")
        if not isinstance(report, str) or not report.strip():
            logger.warning("Generation response has no report text for %s", data.student_name)
            return REPORT_FALLBACK_TEXT
        return report

    def analyze_student(self, data: dict[str, Any]) -> StudentAnalysis:
        content = self._complete(
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            user_prompt=build_analysis_prompt(data),
            temperature=ANALYSIS_TEMPERATURE,
        )
        return StudentAnalysis(
            strengths=_string_list(content.get("strengths")),
            improvements=_string_list(content.get("improvements")),
            recommendations=_string_list(content.get("recommendations")),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpenAIChatClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> dict[str, Any]:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
            "temperature": temperature,
        }
        try:
            response = self._client.post("/chat/completions", json=body)
        except httpx.TimeoutException as exc:
            raise GenerationError("Generation request timed out.", transient=True) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"Generation request failed: {exc}", transient=True) from exc

        if not response.is_success:
            raise GenerationError(
                f"Generation endpoint returned HTTP {response.status_code}",
                transient=(
                    response.status_code >= 500
                    or response.status_code in _TRANSIENT_STATUS_CODES
                ),
            )

        try:
            message = response.json()["choices"][0]["message"].get("content") or "{}"
            parsed = json.loads(message)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise GenerationError(f"Unparsable generation response: {exc}") from exc
        if not isinstance(parsed, dict):
            raise GenerationError("Generation response content is not a JSON object.")
        return parsed


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]
