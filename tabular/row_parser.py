"""
Tabular row parser.

Reads each data row by mapped column index and emits the same
``ParseResult`` shape as the line parser, through the same
validation/default/confidence step. A bad row never stops the others.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from core.error_handler import log_execution_time
from core.exceptions import ContractViolationError
from intake.confidence import ConfidenceScorer
from intake.extractor import MAX_LABEL_LENGTH, ExtractionResult, TokenExtractor
from intake.models import (
    GRAIN_ALONG_L,
    GRAIN_ALONG_W,
    GRAIN_NONE,
    CncOp,
    CutPart,
    GrooveOp,
    HoleOp,
    ParseContext,
    ParseError,
    ParseResult,
)
from intake.number_parser import parse_count, parse_dimension_value
from intake.parser import assemble_part, check_context
from intake.vocabulary import ALL_EDGES, DEFAULT_VOCABULARY, Vocabulary

from . import fields as F
from .mapping import ColumnMapping, resolve_mapping

GRAIN_CELL_VALUES = {
    "gl": GRAIN_ALONG_L, "along_l": GRAIN_ALONG_L, "along l": GRAIN_ALONG_L, "length": GRAIN_ALONG_L,
    "l": GRAIN_ALONG_L, "long": GRAIN_ALONG_L, "vertical": GRAIN_ALONG_L,
    "gw": GRAIN_ALONG_W, "along_w": GRAIN_ALONG_W, "along w": GRAIN_ALONG_W, "width": GRAIN_ALONG_W,
    "w": GRAIN_ALONG_W, "wide": GRAIN_ALONG_W, "horizontal": GRAIN_ALONG_W, "cross": GRAIN_ALONG_W,
}
ALL_EDGE_CELL_VALUES = frozenset({"all", "all round", "all sides", "4", "four", "full"})
DEFAULT_CNC_PROGRAM = "custom"

_EDGEBAND_CODE_RE = re.compile(r"^EB-[A-Z0-9][A-Z0-9.\-]*$", re.IGNORECASE)
# cells that only make sense inside a groove or hole column
_GROOVE_DETAIL_RE = re.compile(r"\b[LW][12]\b|\bwide\b|\bdeep\b", re.IGNORECASE)
_SPACING_CELL_RE = re.compile(r"^(?:@|at)?\s*\d+(?:\.\d+)?\s*mm$", re.IGNORECASE)
# a single token with a digit, underscore or hyphen, e.g. ``P101`` or ``SINK-60``
_PROGRAM_ID_RE = re.compile(r"^(?=\S*[\d_\-])[A-Za-z0-9][\w.\-]*$")


@dataclass
class TabularParseResult:
    """Ordered per-row results plus the mapping they were read with."""
    results: List[ParseResult] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    mapping: Optional[ColumnMapping] = None
    missing_fields: List[str] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return bool(self.missing_fields)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def parts(self) -> List[CutPart]:
        return [r.part for r in self.results if r.part is not None]

    @property
    def average_confidence(self) -> float:
        scores = [r.confidence for r in self.results if r.ok]
        return sum(scores) / len(scores) if scores else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": list(self.headers),
            "mapping": self.mapping.to_dict() if self.mapping is not None else None,
            "missing_fields": list(self.missing_fields),
            "results": [r.to_dict() for r in self.results],
            "stats": {
                "total_rows": len(self.results),
                "success_count": self.success_count,
                "error_count": self.error_count,
                "average_confidence": round(self.average_confidence, 4),
            },
        }


class TabularRowParser:
    """Converts mapped spreadsheet rows into parts."""

    def __init__(
        self,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        scorer: Optional[ConfidenceScorer] = None,
        extractor: Optional[TokenExtractor] = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.scorer = scorer or ConfidenceScorer()
        self.extractor = extractor or TokenExtractor(vocabulary)

    @log_execution_time(level="DEBUG", label="parse_tabular")
    def parse(
        self,
        rows: Sequence[Sequence[Any]],
        header_row_index: int,
        data_start_index: int,
        mapping: Optional[ColumnMapping] = None,
        context: Optional[ParseContext] = None,
    ) -> TabularParseResult:
        """
        Parse every data row below the header row.

        Args:
            rows: Raw rows, header row included
            header_row_index: Index of the header row in ``rows``
            data_start_index: Index of the first data row
            mapping: Resolved mapping; resolved from the header row when None
            context: Defaults and channel; ``ParseContext(source_method="tabular")`` when omitted

        Returns:
            TabularParseResult; empty with ``missing_fields`` when the
            mapping lacks a required field

        Raises:
            ContractViolationError: impossible indexes or argument types
        """
        self._check_arguments(rows, header_row_index, data_start_index, mapping)
        context = check_context(context) if context is not None else ParseContext(source_method="tabular")

        headers = _cells(rows[header_row_index])
        if mapping is None:
            mapping = resolve_mapping(headers)
        if not mapping.is_complete:
            logger.warning(f"Tabular parse blocked: mapping missing {', '.join(mapping.missing_required)}")
            return TabularParseResult(headers=headers, mapping=mapping, missing_fields=mapping.missing_required)

        results = []
        for index in range(data_start_index, len(rows)):
            cells = _cells(rows[index])
            if not any(cells):
                continue
            results.append(self.parse_row(cells, index, mapping, context))

        outcome = TabularParseResult(results=results, headers=headers, mapping=mapping)
        logger.info(
            f"Parsed {len(results)} rows: {outcome.success_count} parts, {outcome.error_count} errors"
        )
        return outcome

    @staticmethod
    def _check_arguments(rows, header_row_index, data_start_index, mapping) -> None:
        if rows is None or isinstance(rows, (str, bytes)):
            raise ContractViolationError("rows must be a sequence of rows")
        for name, value in (("header_row_index", header_row_index), ("data_start_index", data_start_index)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ContractViolationError(f"{name} must be an integer")
        if header_row_index < 0:
            raise ContractViolationError("header_row_index must not be negative")
        if header_row_index >= len(rows):
            raise ContractViolationError(f"header_row_index {header_row_index} outside {len(rows)} rows")
        if data_start_index <= header_row_index:
            raise ContractViolationError("data_start_index must come after header_row_index")
        if mapping is not None and not isinstance(mapping, ColumnMapping):
            raise ContractViolationError("mapping must be a ColumnMapping")

    def parse_row(self, cells: List[str], index: int, mapping: ColumnMapping, context: ParseContext) -> ParseResult:
        """Parse one data row; ``index`` is its position in the raw rows."""
        def cell(field_id: str) -> str:
            column = mapping.column_for(field_id)
            if column is None or column >= len(cells):
                return ""
            return cells[column]

        source_text = "\t".join(cells)
        errors: List[ParseError] = []

        length = parse_dimension_value(cell(F.LENGTH)) if cell(F.LENGTH) else None
        width = parse_dimension_value(cell(F.WIDTH)) if cell(F.WIDTH) else None
        for name, raw, value in ((F.LENGTH, cell(F.LENGTH), length), (F.WIDTH, cell(F.WIDTH), width)):
            if value is None or value <= 0:
                errors.append(ParseError(index, f"invalid {name}: {raw!r}" if raw else f"missing {name}"))
        if errors:
            logger.debug(f"Row {index}: no part ({'; '.join(e.message for e in errors)})")
            return ParseResult(index=index, source_text=source_text, errors=errors)

        extraction = ExtractionResult(text=source_text, length_mm=length, width_mm=width)
        warnings: List[str] = []

        raw_qty = cell(F.QUANTITY)
        if raw_qty:
            extraction.qty = parse_count(raw_qty)
            if extraction.qty is None:
                warnings.append(f"unreadable quantity {raw_qty!r}, defaulted to 1")

        raw_thickness = cell(F.THICKNESS)
        if raw_thickness:
            extraction.thickness_mm = parse_dimension_value(raw_thickness)
            if extraction.thickness_mm is None or extraction.thickness_mm <= 0:
                extraction.thickness_mm = None
                warnings.append(f"unreadable thickness {raw_thickness!r}, default used")

        extraction.material_id = cell(F.MATERIAL) or None
        extraction.label = cell(F.LABEL)[:MAX_LABEL_LENGTH] or None
        extraction.grain = self._parse_grain(cell(F.GRAIN), warnings)
        self._parse_edges(cell, extraction, warnings)
        unrecognized: List[str] = []
        extraction.grooves = self._read_operation(F.GROOVES, cell(F.GROOVES), self._parse_grooves, unrecognized, warnings)
        extraction.holes = self._read_operation(F.HOLES, cell(F.HOLES), self._parse_holes, unrecognized, warnings)
        extraction.cnc = self._read_operation(F.CNC, cell(F.CNC), self._parse_cnc, unrecognized, warnings)
        notes = "; ".join(text for text in [cell(F.NOTES)] + unrecognized if text)

        result = assemble_part(
            extraction,
            context,
            self.scorer,
            index=index,
            source_text=source_text,
            source_ref=f"row:{index}",
            group_id=cell(F.GROUP) or None,
            notes=notes or None,
        )
        result.warnings = warnings + result.warnings
        if result.ok:
            logger.debug(
                f"Row {index}: {result.part.size.L}x{result.part.size.W} qty={result.part.qty} "
                f"confidence={result.confidence}"
            )
        return result

    # -- cell readers ---------------------------------------------------------

    def _is_truthy(self, value: str) -> bool:
        return value.strip().lower() in self.vocabulary.truthy_markers

    def _is_falsy(self, value: str) -> bool:
        return value.strip().lower() in self.vocabulary.falsy_markers

    def _parse_grain(self, value: str, warnings: List[str]) -> str:
        lowered = value.strip().lower()
        if self._is_falsy(lowered):
            return GRAIN_NONE
        if lowered in GRAIN_CELL_VALUES:
            return GRAIN_CELL_VALUES[lowered]
        if self._is_truthy(lowered):
            return GRAIN_ALONG_L
        grain = self.extractor.extract_operations(value).grain
        if grain == GRAIN_NONE:
            warnings.append(f"unrecognized grain {value!r}, none assumed")
        return grain

    def _parse_edges(self, cell, extraction: ExtractionResult, warnings: List[str]) -> None:
        edges = set()
        edgeband_id = None

        value = cell(F.EDGEBANDING).strip()
        if value and not self._is_falsy(value):
            if self._is_truthy(value) or value.lower() in ALL_EDGE_CELL_VALUES:
                edges.update(ALL_EDGES)
            elif _EDGEBAND_CODE_RE.match(value):
                edges.update(ALL_EDGES)
                edgeband_id = value.upper()
            else:
                found = self.extractor.extract_operations(value)
                edges.update(found.edges)
                edgeband_id = found.edgeband_id
                warnings.extend(found.warnings)
                if not found.edges:
                    warnings.append(f"unrecognized edgebanding {value!r}")

        for field_id, edge in F.EDGE_FIELDS.items():
            flag = cell(field_id).strip()
            if not flag or self._is_falsy(flag):
                continue
            edges.add(edge)
            if _EDGEBAND_CODE_RE.match(flag) and edgeband_id is None:
                edgeband_id = flag.upper()

        extraction.edges = tuple(edge for edge in ALL_EDGES if edge in edges)
        extraction.edgeband_id = edgeband_id

    def _read_operation(self, field_id: str, value: str, reader, unrecognized: List[str], warnings: List[str]) -> list:
        """Run one operation cell reader; unrecognized text is kept for the notes."""
        value = value.strip()
        if not value or self._is_falsy(value):
            return []
        if self._is_truthy(value):
            return reader(None)
        ops = reader(value)
        if not ops:
            warnings.append(f"unrecognized {field_id} {value!r}, kept in notes")
            unrecognized.append(value)
        return ops

    def _parse_grooves(self, value: Optional[str]) -> List[GrooveOp]:
        if value is None:
            side, width, depth = self.vocabulary.default_groove
            return [GrooveOp(side=side, width_mm=width, depth_mm=depth)]
        grooves = self.extractor.extract_operations(value).grooves
        if not grooves and _GROOVE_DETAIL_RE.search(value):
            grooves = self.extractor.extract_operations(f"groove {value}").grooves
        return grooves

    def _parse_holes(self, value: Optional[str]) -> List[HoleOp]:
        if value is None:
            return [HoleOp(pattern="holes")]
        holes = self.extractor.extract_operations(value).holes
        if not holes and _SPACING_CELL_RE.match(value):
            holes = self.extractor.extract_operations(f"holes {value}").holes
        return holes

    def _parse_cnc(self, value: Optional[str]) -> List[CncOp]:
        if value is None:
            return [CncOp(DEFAULT_CNC_PROGRAM)]
        programs = self.extractor.extract_operations(value).cnc
        if not programs and _PROGRAM_ID_RE.match(value):
            programs = [CncOp(value)]
        return programs


def _cells(row: Any) -> List[str]:
    if row is None:
        return []
    if isinstance(row, (str, bytes)):
        raise ContractViolationError("each row must be a sequence of cells")
    return ["" if c is None else str(c).strip() for c in row]


@lru_cache(maxsize=1)
def default_row_parser() -> TabularRowParser:
    return TabularRowParser()


def parse_tabular(
    rows: Sequence[Sequence[Any]],
    header_row_index: int,
    data_start_index: int,
    mapping: Optional[ColumnMapping] = None,
    context: Optional[ParseContext] = None,
) -> TabularParseResult:
    """Parse spreadsheet rows with the default row parser."""
    return default_row_parser().parse(rows, header_row_index, data_start_index, mapping, context)
