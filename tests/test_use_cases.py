"""Unit tests for use cases."""
from unittest.mock import Mock

import pytest

from app.use_cases import ExportPartsUseCase, ParseTabularFileUseCase, ParseTextUseCase
from core.exceptions import ExportError, InputFileError, MappingIncompleteError, ParsingError
from intake.batch import BatchParser
from intake.models import BatchResult, ParseContext
from tabular.row_parser import TabularRowParser


class TestParseTextUseCase:
    """Tests for ParseTextUseCase."""

    def test_successful_parsing(self):
        # Arrange
        use_case = ParseTextUseCase(BatchParser(), ParseContext(source_method="text"))

        # Act
        result = use_case.execute("720x560 qty 2\nbad line")

        # Assert
        assert result.is_success()
        batch = result.unwrap()
        assert batch.success_count == 1
        assert batch.error_count == 1
        assert batch.parts[0].audit.source_method == "text"

    def test_context_override(self):
        mock_parser = Mock()
        mock_parser.parse.return_value = BatchResult()
        default_ctx, override_ctx = ParseContext(), ParseContext(source_method="voice")
        use_case = ParseTextUseCase(mock_parser, default_ctx)

        use_case.execute("720x560", override_ctx)

        mock_parser.parse.assert_called_once_with("720x560", override_ctx)

    def test_parsing_failure(self):
        # Arrange
        mock_parser = Mock()
        mock_parser.parse.side_effect = Exception("Parse error")
        use_case = ParseTextUseCase(mock_parser)

        # Act
        result = use_case.execute("720x560")

        # Assert
        assert result.is_failure()
        assert isinstance(result.error, ParsingError)

    def test_contract_violation_becomes_failure(self):
        result = ParseTextUseCase(BatchParser()).execute(None)

        assert result.is_failure()
        assert isinstance(result.error, ParsingError)


class TestParseTabularFileUseCase:
    """Tests for ParseTabularFileUseCase."""

    @pytest.fixture
    def csv_path(self, tmp_path):
        path = tmp_path / "cuts.csv"
        path.write_text(
            "Job 7,,\n"
            "Part,Length (mm),Width (mm),Qty\n"
            "Side,720,560,2\n"
            "Shelf,560,500,4\n",
            encoding="utf-8",
        )
        return path

    def test_detects_header_and_parses(self, csv_path):
        # Arrange
        use_case = ParseTabularFileUseCase(TabularRowParser())

        # Act
        result = use_case.execute(csv_path)

        # Assert
        assert result.is_success()
        outcome = result.unwrap()
        assert [p.qty for p in outcome.parts] == [2, 4]
        assert outcome.parts[0].audit.source_ref == "row:2"

    def test_explicit_assignments(self, csv_path):
        use_case = ParseTabularFileUseCase(TabularRowParser())

        result = use_case.execute(
            csv_path,
            header_row=1,
            assignments={"length": "Width (mm)", "width": "Length (mm)"},
        )

        part = result.unwrap().parts[0]
        assert (part.size.L, part.size.W) == (560.0, 720.0)
        assert part.qty == 1

    def test_incomplete_mapping(self, tmp_path):
        path = tmp_path / "cuts.csv"
        path.write_text("Name,Qty\nSide,2\n", encoding="utf-8")

        result = ParseTabularFileUseCase(TabularRowParser()).execute(path)

        assert result.is_failure()
        assert isinstance(result.error, MappingIncompleteError)
        assert result.error.missing == ["length", "width"]

    def test_missing_file(self, tmp_path):
        result = ParseTabularFileUseCase(TabularRowParser()).execute(tmp_path / "missing.csv")

        assert result.is_failure()
        assert isinstance(result.error, InputFileError)

    def test_unexpected_error(self, csv_path):
        mock_parser = Mock()
        mock_parser.parse.side_effect = RuntimeError("boom")

        result = ParseTabularFileUseCase(mock_parser).execute(csv_path)

        assert result.is_failure()
        assert isinstance(result.error, ParsingError)


class TestExportPartsUseCase:
    """Tests for ExportPartsUseCase."""

    def test_successful_export(self):
        # Arrange
        mock_exporter = Mock()
        mock_exporter.write_results.return_value = 3
        use_case = ExportPartsUseCase(mock_exporter)

        # Act
        result = use_case.execute([])

        # Assert
        assert result.is_success()
        assert result.unwrap() == 3
        mock_exporter.write_results.assert_called_once_with([])

    def test_export_failure(self):
        mock_exporter = Mock()
        mock_exporter.write_results.side_effect = ExportError("disk full")

        result = ExportPartsUseCase(mock_exporter).execute([])

        assert result.is_failure()
        assert isinstance(result.error, ExportError)

    def test_unexpected_failure_wrapped(self):
        mock_exporter = Mock()
        mock_exporter.write_results.side_effect = OSError("denied")

        result = ExportPartsUseCase(mock_exporter).execute([])

        assert isinstance(result.error, ExportError)
