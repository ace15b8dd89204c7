"""Text-generation clients used by batch handlers."""

from tutor_reports.generation.base import (
    GenerationClient,
    GenerationError,
    ReportGenerationInput,
    StudentAnalysis,
)
from tutor_reports.generation.factory import build_generation_client

__all__ = [
    "GenerationClient",
    "GenerationError",
    "ReportGenerationInput",
    "StudentAnalysis",
    "build_generation_client",
]
