"""Reading raw rows from CSV/XLSX files and pasted spreadsheet text."""
from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd
from loguru import logger

from core.exceptions import InputFileError

from .fields import TARGET_FIELDS, TargetField
from .mapping import ColumnMappingResolver

DELIMITED_SUFFIXES = {".csv", ".tsv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
HEADER_SCAN_ROWS = 10
_CANDIDATE_DELIMITERS = (",", ";", "|")


def _clean(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _trim_trailing_blank_rows(rows: List[List[str]]) -> List[List[str]]:
    while rows and not any(rows[-1]):
        rows.pop()
    return rows


def _pick_delimiter(lines: List[str]) -> str:
    """Tab when present, otherwise the most frequent candidate in the first line."""
    if any("\t" in line for line in lines):
        return "\t"
    first = next((line for line in lines if line.strip()), "")
    best = max(_CANDIDATE_DELIMITERS, key=first.count)
    return best if first.count(best) else ","


def _trim_trailing_blank_columns(rows: List[List[str]]) -> List[List[str]]:
    width = max((i + 1 for row in rows for i, cell in enumerate(row) if cell), default=0)
    return [row[:width] for row in rows]


def rows_from_text(text: str, delimiter: Optional[str] = None) -> List[List[str]]:
    """
    Split pasted spreadsheet text into rows of cells.

    Args:
        text: Text copied from a spreadsheet or a CSV file
        delimiter: Force a delimiter; otherwise tab when present, else the
            most frequent of ``, ; |`` in the first line

    Returns:
        Rows of stripped cell strings, trailing blank rows removed
    """
    if not text or not text.strip():
        return []
    lines = text.splitlines()
    if delimiter is None:
        delimiter = _pick_delimiter(lines[:20])
    # ragged rows are padded up to the widest line
    width = max(line.count(delimiter) for line in lines) + 1
    frame = pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        engine="python",
    )
    rows = [[_clean(v) for v in row] for row in frame.itertuples(index=False, name=None)]
    return _trim_trailing_blank_columns(_trim_trailing_blank_rows(rows))


def _read_excel(path: Path, sheet: Optional[Union[str, int]]) -> List[List[str]]:
    engine = "openpyxl" if path.suffix.lower() in {".xlsx", ".xlsm"} else None
    frame = pd.read_excel(
        path,
        sheet_name=sheet if sheet is not None else 0,
        header=None,
        engine=engine,
    )
    rows = [[_clean(v) for v in row] for row in frame.itertuples(index=False, name=None)]
    return _trim_trailing_blank_rows(rows)


def load_rows(path: Union[str, Path], sheet: Optional[Union[str, int]] = None) -> List[List[str]]:
    """
    Load raw rows from a CSV/TSV/TXT or XLSX/XLSM/XLS file.

    Args:
        path: File to read
        sheet: Sheet name or index for workbooks (first sheet by default)

    Returns:
        Rows of cell strings with blanks as ``""``

    Raises:
        InputFileError: missing file, unsupported type or unreadable content
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileError(f"File not found: {path}")
    suffix = path.suffix.lower()

    try:
        if suffix in DELIMITED_SUFFIXES:
            text = path.read_text(encoding="utf-8-sig")
            rows = rows_from_text(text, delimiter="\t" if suffix == ".tsv" else None)
        elif suffix in EXCEL_SUFFIXES:
            rows = _read_excel(path, sheet)
        else:
            raise InputFileError(f"Unsupported file type: {suffix or path.name}")
    except InputFileError:
        raise
    except Exception as e:
        logger.warning(f"Could not read {path}: {e}")
        raise InputFileError(f"Failed to read {path}: {e}") from e

    logger.info(f"Loaded {len(rows)} rows from {path.name}")
    return rows


def detect_header_row(
    rows: Sequence[Sequence[str]],
    fields: Sequence[TargetField] = TARGET_FIELDS,
    max_rows: int = HEADER_SCAN_ROWS,
) -> int:
    """Index of the first of the leading rows whose mapping is complete, else 0."""
    resolver = ColumnMappingResolver(fields)
    for index, row in enumerate(rows[:max_rows]):
        if not any(_clean(c) for c in row):
            continue
        if resolver.resolve(row, warn_incomplete=False).is_complete:
            return index
    return 0
