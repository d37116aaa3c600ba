"""Use cases for cutlist intake.

Implements the use case layer following Clean Architecture principles,
orchestrating parsers, file loading and export between the command
line and the parsing packages. Every use case returns a Result instead
of raising.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

from loguru import logger

from core.exceptions import CutlistIntakeException, ExportError, MappingIncompleteError, ParsingError
from core.result import Failure, Result, Success
from intake.batch import BatchParser
from intake.models import BatchResult, ParseContext, ParseResult
from tabular.fields import TARGET_FIELDS, TargetField
from tabular.loader import detect_header_row, load_rows
from tabular.mapping import ColumnMapping, ColumnMappingResolver
from tabular.row_parser import TabularParseResult, TabularRowParser


class ParseTextUseCase:
    """Use case for parsing a block of free-form cutlist text.

    Each non-empty line becomes one ParseResult; bad lines are reported
    in the batch rather than failing the run.
    """

    def __init__(self, batch_parser: BatchParser, context: Optional[ParseContext] = None):
        self.batch_parser = batch_parser
        self.context = context

    def execute(self, text: str, context: Optional[ParseContext] = None) -> Result[BatchResult, ParsingError]:
        """Parse text and return the batch.

        Args:
            text: Pasted, typed or transcribed cutlist text
            context: Overrides the context given at construction

        Returns:
            Result containing BatchResult on success or ParsingError on failure
        """
        try:
            batch = self.batch_parser.parse(text, context or self.context)
            logger.info(
                f"[parsed] lines={len(batch.results)} parts={batch.success_count} "
                f"errors={batch.error_count} pieces={batch.total_pieces}"
            )
            return Success(batch)
        except Exception as e:
            logger.error(f"Failed to parse text: {e}")
            return Failure(ParsingError(f"Failed to parse: {e}"))


class ParseTabularFileUseCase:
    """Use case for parsing a CSV/XLSX cutlist file.

    Loads the rows, finds the header row, maps the headers onto part
    fields and parses every data row. A mapping that lacks a required
    field blocks the run with MappingIncompleteError.
    """

    def __init__(
        self,
        row_parser: TabularRowParser,
        fields: Sequence[TargetField] = TARGET_FIELDS,
        context: Optional[ParseContext] = None,
    ):
        self.row_parser = row_parser
        self.fields = fields
        self.context = context

    def execute(
        self,
        path: Union[str, Path],
        sheet: Optional[Union[str, int]] = None,
        header_row: Optional[int] = None,
        data_start: Optional[int] = None,
        assignments: Optional[Dict[str, Union[int, str]]] = None,
    ) -> Result[TabularParseResult, CutlistIntakeException]:
        """Parse a tabular file.

        Args:
            path: CSV, TSV or XLSX file
            sheet: Worksheet name or index for workbooks
            header_row: Header row index; detected when None
            data_start: First data row index; the row after the header when None
            assignments: field id -> header or column index, replacing the fuzzy mapping

        Returns:
            Result containing TabularParseResult on success, or
            MappingIncompleteError / ParsingError / InputFileError on failure
        """
        try:
            rows = load_rows(path, sheet=sheet)
            if not rows:
                return Failure(ParsingError(f"No rows found in {path}"))

            if header_row is None:
                header_row = detect_header_row(rows, self.fields)
            if data_start is None:
                data_start = header_row + 1

            headers = rows[header_row]
            if assignments:
                mapping = ColumnMapping.from_assignments(headers, assignments)
            else:
                mapping = ColumnMappingResolver(self.fields).resolve(headers)

            outcome = self.row_parser.parse(rows, header_row, data_start, mapping=mapping, context=self.context)
            if outcome.blocked:
                return Failure(MappingIncompleteError(outcome.missing_fields))

            logger.info(
                f"[parsed] rows={len(outcome.results)} parts={outcome.success_count} errors={outcome.error_count}"
            )
            return Success(outcome)
        except CutlistIntakeException as e:
            logger.error(f"Failed to parse {path}: {e}")
            return Failure(e)
        except Exception as e:
            logger.error(f"Failed to parse {path}: {e}")
            return Failure(ParsingError(f"Failed to parse: {e}"))


class ExportPartsUseCase:
    """Use case for writing parse results to the review workbook."""

    def __init__(self, exporter):
        self.exporter = exporter

    def execute(self, results: Iterable[ParseResult]) -> Result[int, ExportError]:
        """Export results.

        Returns:
            Result with the number of part rows written, or ExportError on failure
        """
        try:
            count = self.exporter.write_results(results)
            logger.info(f"[excel] Wrote {count} parts to {self.exporter.file_path}")
            return Success(count)
        except Exception as e:
            logger.error(f"Failed to export parts: {e}")
            if isinstance(e, ExportError):
                return Failure(e)
            return Failure(ExportError(f"Failed to export: {e}"))
