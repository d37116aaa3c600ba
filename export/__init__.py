"""Export of parsed cutlists to review workbooks."""
from __future__ import annotations

from .excel_exporter import PartsExcelExporter

__all__ = ["PartsExcelExporter"]
