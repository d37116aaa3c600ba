"""Exception hierarchy for the cutlist intake engine."""
from __future__ import annotations

from typing import Iterable, List


class CutlistIntakeException(Exception):
    """Base exception for all cutlist intake errors."""
    pass


class ContractViolationError(CutlistIntakeException, ValueError):
    """Raised when a caller passes arguments the parsers cannot accept.

    Malformed input *data* never raises; only misuse of a function signature
    (``None`` text, a context of the wrong type, impossible row indexes) does.
    """
    pass


class ParsingError(CutlistIntakeException):
    """Raised when a parse run fails outside the advisory error path."""
    pass


class MappingIncompleteError(CutlistIntakeException):
    """Raised when required target fields have no mapped column."""

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"Mapping incomplete: missing {', '.join(self.missing)}")


class InputFileError(CutlistIntakeException):
    """Raised when a CSV/XLSX source cannot be read."""
    pass


class ExportError(CutlistIntakeException):
    """Raised when the review workbook cannot be written."""
    pass


class ConfigurationError(CutlistIntakeException):
    """Raised when configuration is invalid or missing."""
    pass
