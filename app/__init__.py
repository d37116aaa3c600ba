"""Command-line application layer: use cases, logging setup and startup."""
from __future__ import annotations

from .use_cases import ExportPartsUseCase, ParseTabularFileUseCase, ParseTextUseCase

__all__ = ["ParseTextUseCase", "ParseTabularFileUseCase", "ExportPartsUseCase"]
