from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from core.exceptions import ExportError
from export.excel_exporter import ERRORS_SHEET, PARTS_HEADER, PARTS_SHEET, PartsExcelExporter
from intake.batch import parse_batch
from intake.models import ParseContext


@pytest.fixture
def batch():
    return parse_batch("side 720x560 qty 2 edged\nbad line\nshelf 560x500 q4 grain length", ParseContext())


def test_write_results_creates_both_sheets(tmp_path, batch):
    # Arrange
    path = tmp_path / "review.xlsx"
    exporter = PartsExcelExporter(str(path))

    # Act
    count = exporter.write_results(batch.results)

    # Assert
    assert count == 2
    wb = load_workbook(path)
    parts = wb[PARTS_SHEET]
    errors = wb[ERRORS_SHEET]
    assert [c.value for c in parts[1]] == PARTS_HEADER
    assert parts.max_row == 3  # header + 2 parts
    assert parts.cell(row=2, column=2).value == "side"
    assert parts.cell(row=2, column=10).value == "L1,L2,W1,W2"
    assert parts.cell(row=3, column=8).value == "along_L"
    assert errors.max_row == 2
    assert errors.cell(row=2, column=2).value == "dimensions not found"


def test_write_results_replaces_previous_content(tmp_path, batch):
    path = tmp_path / "review.xlsx"
    exporter = PartsExcelExporter(str(path))

    exporter.write_results(batch.results)
    exporter.write_results(batch.results[:1])

    assert load_workbook(path)[PARTS_SHEET].max_row == 2


def test_append_parts_accumulates(tmp_path, batch):
    path = tmp_path / "nested" / "review.xlsx"
    exporter = PartsExcelExporter(str(path))

    exporter.append_parts(batch.parts)
    exporter.append_parts(batch.parts[:1])

    ids = exporter.read_part_ids()
    assert len(ids) == 3
    assert ids[0] == batch.parts[0].part_id


def test_read_part_ids_without_file(tmp_path):
    assert PartsExcelExporter(str(tmp_path / "none.xlsx")).read_part_ids() == []


def test_save_failure_raises_export_error(tmp_path, batch):
    exporter = PartsExcelExporter(str(tmp_path / "review.xlsx"))

    with patch("export.excel_exporter.Workbook.save", side_effect=PermissionError("locked")):
        with pytest.raises(ExportError):
            exporter.write_results(batch.results)
