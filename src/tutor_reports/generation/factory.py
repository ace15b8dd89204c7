"""Generation client construction from settings."""

from __future__ import annotations

from tutor_reports.config import GenerationSettings
from tutor_reports.generation.base import GenerationClient
from tutor_reports.generation.echo import EchoGenerationClient
from tutor_reports.generation.openai_client import OpenAIChatClient


def build_generation_client(settings: GenerationSettings) -> GenerationClient:
    if settings.backend == "echo":
        return EchoGenerationClient()
    if settings.backend == "openai":
        return OpenAIChatClient(
            api_key=settings.api_key,
            api_base=settings.api_base,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
        )
    raise ValueError(f"Unsupported generation backend: {settings.backend!r}")
