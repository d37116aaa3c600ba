"""
Tabular Cutlist Package.

Maps arbitrary spreadsheet headers onto canonical part fields and converts
the rows of CSV/XLSX files or pasted spreadsheet text into the same
``ParseResult`` records the free-text parser produces.

Main Components:
    fuzzy_match: Header-versus-keyword similarity in [0, 1]
    ColumnMappingResolver: Greedy, priority-ordered header assignment
    ColumnMapping: Field -> column index, adjustable by a human
    TabularRowParser: Row-by-row conversion through a mapping
    load_rows / rows_from_text: Raw rows from files or pasted text
"""

from __future__ import annotations

from .fields import FIELD_IDS, REQUIRED_FIELDS, TARGET_FIELDS, TargetField, extend_fields
from .fuzzy import CANDIDATE_THRESHOLD, fuzzy_match
from .loader import detect_header_row, load_rows, rows_from_text
from .mapping import ColumnMapping, ColumnMappingResolver, resolve_mapping
from .row_parser import TabularParseResult, TabularRowParser, parse_tabular

__all__ = [
    "fuzzy_match",
    "resolve_mapping",
    "parse_tabular",
    "ColumnMapping",
    "ColumnMappingResolver",
    "TabularRowParser",
    "TabularParseResult",
    "TargetField",
    "TARGET_FIELDS",
    "FIELD_IDS",
    "REQUIRED_FIELDS",
    "CANDIDATE_THRESHOLD",
    "extend_fields",
    "load_rows",
    "rows_from_text",
    "detect_header_row",
]
