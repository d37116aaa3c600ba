"""
Column mapping for tabular cutlists.

``ColumnMappingResolver`` scores every header against every target field
with the fuzzy matcher, then walks the fields in their fixed priority order
and lets each claim its best unused header. A header claimed once is never
reassigned. The result is deterministic for a given header list but not
globally optimal.

Classes:
    ColumnMapping: Field id -> column index over a header list
    ColumnMappingResolver: Greedy, priority-ordered header assignment

Functions:
    resolve_mapping: Resolve with the default field table
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger

from core.exceptions import ContractViolationError, MappingIncompleteError

from .fields import FIELD_IDS, REQUIRED_FIELDS, TARGET_FIELDS, TargetField
from .fuzzy import CANDIDATE_THRESHOLD, fuzzy_match, normalize_header

MANUAL_SCORE = 1.0


def _check_headers(headers: Sequence[Any]) -> Tuple[str, ...]:
    if headers is None or isinstance(headers, (str, bytes)):
        raise ContractViolationError("headers must be a sequence of strings")
    return tuple("" if h is None else str(h) for h in headers)


@dataclass(frozen=True)
class ColumnMapping:
    """
    Assignment of canonical fields to header columns.

    A field is mapped iff it has a column index. Instances are immutable;
    ``assign`` and ``unassign`` return new mappings.

    Attributes:
        headers: Header row the indexes refer to
        columns: field id -> column index
        scores: field id -> match score of the assigned header
        required: Fields that must be mapped before parsing
    """
    headers: Tuple[str, ...]
    columns: Dict[str, int] = field(default_factory=dict)
    scores: Dict[str, float] = field(default_factory=dict)
    required: Tuple[str, ...] = REQUIRED_FIELDS

    def column_for(self, field_id: str) -> Optional[int]:
        return self.columns.get(field_id)

    def header_for(self, field_id: str) -> Optional[str]:
        index = self.columns.get(field_id)
        return self.headers[index] if index is not None else None

    def is_mapped(self, field_id: str) -> bool:
        return self.columns.get(field_id) is not None

    def as_header_dict(self) -> Dict[str, str]:
        """field id -> header string, in field priority order."""
        return {f: self.headers[self.columns[f]] for f in _ordered(self.columns)}

    @property
    def missing_required(self) -> List[str]:
        return [f for f in self.required if not self.is_mapped(f)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_required

    def require_complete(self) -> "ColumnMapping":
        """Return self, or raise ``MappingIncompleteError`` naming missing fields."""
        missing = self.missing_required
        if missing:
            raise MappingIncompleteError(missing)
        return self

    def assign(self, field_id: str, column: Union[int, str]) -> "ColumnMapping":
        """Map ``field_id`` to a column index or header; any previous holder of that column is unmapped."""
        if field_id not in FIELD_IDS:
            raise ContractViolationError(f"Unknown field: {field_id!r}")
        index = self._resolve_column(column)
        columns = {f: c for f, c in self.columns.items() if c != index and f != field_id}
        scores = {f: s for f, s in self.scores.items() if f in columns}
        columns[field_id] = index
        scores[field_id] = MANUAL_SCORE
        return ColumnMapping(self.headers, columns, scores, self.required)

    def unassign(self, field_id: str) -> "ColumnMapping":
        columns = {f: c for f, c in self.columns.items() if f != field_id}
        scores = {f: s for f, s in self.scores.items() if f != field_id}
        return ColumnMapping(self.headers, columns, scores, self.required)

    def _resolve_column(self, column: Union[int, str]) -> int:
        if isinstance(column, bool):
            raise ContractViolationError("column must be an index or a header")
        if isinstance(column, int):
            if not 0 <= column < len(self.headers):
                raise ContractViolationError(f"Column index {column} out of range")
            return column
        wanted = normalize_header(column)
        for index, header in enumerate(self.headers):
            if normalize_header(header) == wanted:
                return index
        raise ContractViolationError(f"Header not found: {column!r}")

    @classmethod
    def from_assignments(cls, headers: Sequence[str], assignments: Dict[str, Union[int, str]]) -> "ColumnMapping":
        """
        Build a mapping from explicit (human-adjusted) assignments.

        Args:
            headers: Header row
            assignments: field id -> header string or column index

        Raises:
            ContractViolationError: unknown field, unknown header or a
                column assigned to two fields
        """
        mapping = cls(_check_headers(headers))
        used: Dict[int, str] = {}
        for field_id, column in assignments.items():
            mapping = mapping.assign(field_id, column)
            index = mapping.columns[field_id]
            if index in used:
                raise ContractViolationError(f"Column {index} assigned to both {used[index]} and {field_id}")
            used[index] = field_id
        return mapping

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mapping": self.as_header_dict(),
            "columns": {f: self.columns[f] for f in _ordered(self.columns)},
            "scores": {f: round(self.scores.get(f, 0.0), 4) for f in _ordered(self.columns)},
            "missing_required": self.missing_required,
        }


def _ordered(field_ids) -> List[str]:
    known = [f for f in FIELD_IDS if f in field_ids]
    return known + sorted(f for f in field_ids if f not in FIELD_IDS)


class ColumnMappingResolver:
    """Greedy header-to-field assignment in field priority order."""

    def __init__(self, fields: Sequence[TargetField] = TARGET_FIELDS, threshold: float = CANDIDATE_THRESHOLD) -> None:
        self.fields = tuple(fields)
        self.threshold = threshold

    def score_headers(self, headers: Sequence[str]) -> Dict[str, List[float]]:
        """field id -> score of each header column."""
        headers = _check_headers(headers)
        return {
            target.id: [fuzzy_match(header, target.match_terms) for header in headers]
            for target in self.fields
        }

    def resolve(self, headers: Sequence[str], warn_incomplete: bool = True) -> ColumnMapping:
        """
        Resolve a mapping for ``headers``.

        Args:
            headers: Header row strings
            warn_incomplete: Log a warning when length/width stay unmapped

        Returns:
            ColumnMapping; possibly incomplete when length/width found no header
        """
        headers = _check_headers(headers)
        scores = self.score_headers(headers)

        columns: Dict[str, int] = {}
        assigned_scores: Dict[str, float] = {}
        used = set()
        for target in self.fields:
            best_index, best_score = None, 0.0
            for index, score in enumerate(scores[target.id]):
                if index in used or score < self.threshold:
                    continue
                if best_index is None or score > best_score:
                    best_index, best_score = index, score
            if best_index is None:
                continue
            columns[target.id] = best_index
            assigned_scores[target.id] = best_score
            used.add(best_index)

        required = tuple(f.id for f in self.fields if f.required)
        mapping = ColumnMapping(headers, columns, assigned_scores, required)
        logger.debug(f"Resolved column mapping {mapping.as_header_dict()} for headers {list(headers)}")
        if warn_incomplete and not mapping.is_complete:
            logger.warning(f"Column mapping incomplete: missing {', '.join(mapping.missing_required)}")
        return mapping


def resolve_mapping(headers: Sequence[str], fields: Optional[Sequence[TargetField]] = None) -> ColumnMapping:
    """Resolve ``headers`` with the default (or the given) field table."""
    return ColumnMappingResolver(fields if fields is not None else TARGET_FIELDS).resolve(headers)
