"""Core infrastructure shared by the intake, tabular and app packages."""
from __future__ import annotations

from .exceptions import (
    CutlistIntakeException,
    ContractViolationError,
    ParsingError,
    MappingIncompleteError,
    InputFileError,
    ExportError,
    ConfigurationError,
)
from .result import Result, Success, Failure

__all__ = [
    "CutlistIntakeException",
    "ContractViolationError",
    "ParsingError",
    "MappingIncompleteError",
    "InputFileError",
    "ExportError",
    "ConfigurationError",
    "Result",
    "Success",
    "Failure",
]
