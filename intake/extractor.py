"""
Token extractor for single cutlist lines.

The extractor normalizes a line, then claims spans of it field by field:
dimensions first, then quantity, operations, thickness, material and grain.
A claimed span is blanked out of the working text so that later patterns
never reuse the same characters (``32mm`` hole spacing is not a thickness,
``GW2-4-10`` is a groove and not a grain hint). Whatever is left over
becomes the label.

Classes:
    ExtractionResult: Fields found in one line
    TokenExtractor: Compiled patterns over an immutable ``Vocabulary``
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple

from .models import EDGE_IDS, GRAIN_ALONG_L, GRAIN_NONE, CncOp, GrooveOp, HoleOp
from .number_parser import parse_decimal, to_millimeters
from .text_normalizer import TextNormalizer
from .text_utils import tokenize_words
from .vocabulary import ALL_EDGES, DEFAULT_VOCABULARY, Vocabulary

NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?"
# ``in`` only counts as a unit when attached to the number
UNIT = r"\s*(?:mm|cm|inches|inch|\")(?![a-wyz])|in(?![a-wyz])"

MIN_STANDALONE_THICKNESS_MM = 3.0
MAX_STANDALONE_THICKNESS_MM = 50.0
MAX_EXPLICIT_THICKNESS_MM = 100.0
MAX_LABEL_LENGTH = 100
# a leading chain number above this is read as a dimension
MAX_CHAIN_QUANTITY = 100

LABEL_EDGE_WORDS = frozenset({"and", "with", "at", "on", "of", "in", "the", "a", "mm", "cm", "x", "by"})

ROTATION_LOCK_GRAIN = GRAIN_ALONG_L

BARE_EDGE_WARNING = "edging side not specified, all edges assumed"


@dataclass
class ExtractionResult:
    """Fields recognized in one line; ``None`` means not stated."""
    text: str
    length_mm: Optional[float] = None
    width_mm: Optional[float] = None
    qty: Optional[int] = None
    qty_ambiguous: bool = False
    thickness_mm: Optional[float] = None
    material_id: Optional[str] = None
    grain: str = GRAIN_NONE
    edges: Tuple[str, ...] = ()
    edgeband_id: Optional[str] = None
    grooves: List[GrooveOp] = field(default_factory=list)
    holes: List[HoleOp] = field(default_factory=list)
    cnc: List[CncOp] = field(default_factory=list)
    label: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def has_dimensions(self) -> bool:
        return (
            self.length_mm is not None and self.width_mm is not None
            and self.length_mm > 0 and self.width_mm > 0
        )

    @property
    def has_operations(self) -> bool:
        return bool(self.edges or self.grooves or self.holes or self.cnc)


class _Scan:
    """Working copy of a line where claimed characters are blanked out."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._chars = list(text)

    @property
    def masked(self) -> str:
        return "".join(self._chars)

    def consume(self, start: int, end: int) -> None:
        for i in range(start, end):
            self._chars[i] = " "


def _unit_of(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def _to_mm(number: str, unit: str) -> Optional[float]:
    value = parse_decimal(number)
    if value is None:
        return None
    return to_millimeters(value, unit or "mm")


def _keyword_pattern(keyword: str) -> Pattern:
    words = [re.escape(word) for word in keyword.split()]
    return re.compile(r"(?<![A-Za-z0-9])" + r"\s+".join(words) + r"(?![A-Za-z0-9])", re.IGNORECASE)


def _phrase_pattern(source: str) -> Pattern:
    return re.compile(rf"\b(?:{source})\b", re.IGNORECASE)


class TokenExtractor:
    """Pulls part fields out of one line of cutlist text.

    The extractor is a pure function of the line and its vocabulary: it
    keeps no state between calls and may be shared across threads.
    """

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY, normalizer: Optional[TextNormalizer] = None) -> None:
        self.vocabulary = vocabulary
        self.normalizer = normalizer or TextNormalizer(vocabulary)
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Pre-compile regex patterns for efficiency."""
        flags = re.IGNORECASE
        vocab = self.vocabulary

        separator = r"(?:x|by|" + "|".join(vocab.dimension_separators) + r")"
        self._labeled_dims = re.compile(
            rf"\b(?:length|len|l)\s*[:=]?\s*(?=\d{{2}})({NUMBER})({UNIT})?\s*(?:(?:x|by|,)\s*)?"
            rf"(?:width|wid|w)\s*[:=]?\s*(?=\d{{2}})({NUMBER})({UNIT})?(?![\d.])",
            flags,
        )
        self._chain_dims = re.compile(
            rf"(?<![\d.,])({NUMBER})({UNIT})?\s*{separator}\s*({NUMBER})({UNIT})?\s*(?:x|\*)\s*({NUMBER})({UNIT})?(?![\d.])",
            flags,
        )
        self._plain_dims = re.compile(
            rf"(?<![\d.,])({NUMBER})({UNIT})?\s*{separator}\s*({NUMBER})({UNIT})?(?![\d.])",
            flags,
        )

        self._qty_patterns = [
            re.compile(r"\b(?:qty|quantity|qnty)\s*[:=]?\s*(-?\d+)(?![\d.])", flags),
            re.compile(r"\bq\s*[:=]?\s*(-?\d+)(?![\d.])", flags),
            re.compile(r"(?<![\w.])(-?\d+)\s*(?:pcs|pc|pieces|piece|off)\b", flags),
            re.compile(r"[(\[]\s*(\d+)\s*[)\]]\s*$"),
            re.compile(
                r"\b(?:" + "|".join(vocab.quantity_verbs) + r")\s+(\d+)(?![\d.])(?!\s*(?:mm|cm)\b)", flags
            ),
        ]
        self._qty_after_pair = re.compile(r"^\s*(?:x|\*|times)\s*(\d+)(?![\d.])", flags)
        self._leading_integer = re.compile(r"^\s*(\d+)(?=\s)(?!\s*(?:mm|cm|inches|inch|in|\")(?![a-z]))", flags)

        self._thickness_patterns = [
            re.compile(rf"(?<![\d.])({NUMBER})\s*mm\s*thick(?:ness)?\b", flags),
            re.compile(rf"\b(?:thickness|thick|thk)\s*[:=]?\s*({NUMBER})\s*(?:mm)?(?![\d.])", flags),
            re.compile(rf"\bt\s*[:=]?\s*({NUMBER})\s*(?:mm)?(?![\d.])", flags),
        ]
        self._standalone_mm = re.compile(rf"(?<![\d.])({NUMBER})\s*mm\b", flags)

        self._groove_code = re.compile(rf"\bG([LW][12])-({NUMBER})-({NUMBER})\b", flags)
        self._groove_keyword = re.compile(r"\b(?:" + "|".join(vocab.groove_keywords) + r")\b", flags)
        self._groove_side = re.compile(r"\b(?:on\s+)?([LW][12])\b", flags)
        self._groove_width = re.compile(rf"(?<![\d.])({NUMBER})\s*(?:mm)?\s*wide\b", flags)
        self._groove_depth = re.compile(rf"(?<![\d.])({NUMBER})\s*(?:mm)?\s*deep\b", flags)
        self._clause_end = re.compile(r"[,;]")

        self._hole_phrases = [(_phrase_pattern(src), pattern_id) for src, pattern_id in vocab.hole_phrases]
        self._spacing_before = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*mm\s*$", flags)
        self._spacing_after = re.compile(r"^\s*(?:@|at|on)?\s*(\d+(?:\.\d+)?)\s*mm\b", flags)
        self._back_face = re.compile(
            r"\b(?:back|rear)\s*face\b|\bface\s*[:=]?\s*(?:back|rear)\b|\bfrom\s+(?:the\s+)?back\b",
            flags,
        )

        self._cnc_keywords = [(_phrase_pattern(src), program) for src, program in vocab.cnc_keywords]
        self._cnc_program = re.compile(r"\b(?:cnc|program|prog)\b ?[:=#]? ?([A-Za-z0-9][\w.\-]*)", flags)
        self._cnc_bare = re.compile(r"\bcnc\b", flags)

        self._edgeband_code = re.compile(r"\bEB-[A-Z0-9][A-Z0-9.\-]*", flags)
        self._edge_phrases = [(_phrase_pattern(src), edges) for src, edges in vocab.edge_phrases]
        self._edge_ids = re.compile(r"\b((?:[LW][12]){1,4})\b", flags)
        self._edge_counts = re.compile(r"\b(?:([12])L([12])W|([12])L|([12])W)\b", flags)
        self._bare_edges = re.compile(r"\b(?:" + "|".join(vocab.bare_edge_keywords) + r")\b", flags)

        self._material_code = re.compile(r"\bMAT-[A-Z0-9][A-Z0-9.\-]*", flags)
        self._materials = [(_keyword_pattern(keyword), material_id) for keyword, material_id in vocab.materials]
        self._grain_phrases = [(_phrase_pattern(src), grain) for src, grain in vocab.grain_phrases]
        self._rotation_lock = re.compile(r"\b(?:" + "|".join(vocab.rotation_lock_phrases) + r")\b", flags)

    def extract(self, line: str, voice: bool = False) -> ExtractionResult:
        """
        Extract every recognizable field from one line.

        Args:
            line: Raw line text
            voice: Treat the line as a voice transcript

        Returns:
            ExtractionResult with the normalized text and found fields
        """
        normalized = self.normalizer.normalize(line, voice=voice)
        scan = _Scan(normalized)
        result = ExtractionResult(text=normalized)

        dim_start, dim_end = self._extract_dimensions(scan, result)
        if not result.has_dimensions:
            return result

        self._extract_quantity(scan, result, dim_start, dim_end)
        self._extract_grooves(scan, result)
        self._extract_holes(scan, result)
        self._extract_cnc(scan, result)
        self._extract_edges(scan, result)
        self._extract_thickness(scan, result)
        self._extract_material(scan, result)
        self._extract_grain(scan, result)
        self._extract_rotation_lock(scan, result)
        result.label = self._extract_label(scan, dim_start)
        return result

    def extract_operations(self, text: str) -> ExtractionResult:
        """Extract only operations and grain from a spreadsheet cell."""
        normalized = self.normalizer.normalize(text)
        scan = _Scan(normalized)
        result = ExtractionResult(text=normalized)
        self._extract_grooves(scan, result)
        self._extract_holes(scan, result)
        self._extract_cnc(scan, result)
        self._extract_edges(scan, result)
        self._extract_grain(scan, result)
        return result

    # -- dimensions and quantity -------------------------------------------

    def _first_valid(self, pattern: Pattern, text: str, groups: int) -> Optional[Tuple[re.Match, List[float]]]:
        for match in pattern.finditer(text):
            units = [_unit_of(match.group(2 * i + 2)) for i in range(groups)]
            shared = next((u for u in units if u), "")
            values = [_to_mm(match.group(2 * i + 1), units[i] or shared) for i in range(groups)]
            if all(v is not None and v > 0 for v in values):
                return match, values
        return None

    def _extract_dimensions(self, scan: _Scan, result: ExtractionResult) -> Tuple[int, int]:
        text = scan.masked
        candidates = []
        for priority, (pattern, groups) in enumerate(
            ((self._chain_dims, 3), (self._labeled_dims, 2), (self._plain_dims, 2))
        ):
            found = self._first_valid(pattern, text, groups)
            if found is not None:
                candidates.append((found[0].start(), priority, found))
        if not candidates:
            return -1, -1

        _, priority, (match, values) = min(candidates, key=lambda c: (c[0], c[1]))
        if priority == 0:
            self._resolve_chain(match, values, result)
        else:
            result.length_mm, result.width_mm = values
        scan.consume(match.start(), match.end())
        return match.start(), match.end()

    def _resolve_chain(self, match: re.Match, values: List[float], result: ExtractionResult) -> None:
        """Split ``a x b x c`` into a pair plus a quantity or a thickness."""
        first, second, third = values
        first_count = parse_decimal(match.group(1))
        third_count = parse_decimal(match.group(5))
        second_count = parse_decimal(match.group(3))
        if (
            first_count == int(first_count)
            and first_count <= MAX_CHAIN_QUANTITY
            and first_count < second_count
            and first_count < third_count
        ):
            # 2 x 720 x 560: leading quantity, flagged for review
            result.qty = int(first_count)
            result.qty_ambiguous = True
            result.length_mm, result.width_mm = second, third
            return

        result.length_mm, result.width_mm = first, second
        if _unit_of(match.group(6)):
            result.thickness_mm = third
        elif third_count == int(third_count):
            result.qty = int(third_count)

    def _extract_quantity(self, scan: _Scan, result: ExtractionResult, dim_start: int, dim_end: int) -> None:
        text = scan.masked
        for pattern in self._qty_patterns:
            match = pattern.search(text)
            if match:
                result.qty = int(match.group(1))
                scan.consume(match.start(), match.end())
                return
        if result.qty is not None:
            return

        after = self._qty_after_pair.match(text[dim_end:])
        if after:
            result.qty = int(after.group(1))
            scan.consume(dim_end + after.start(), dim_end + after.end())
            return

        leading = self._leading_integer.match(text)
        if leading and leading.end() <= dim_start and not re.search(r"\d", text[leading.end():dim_start]):
            result.qty = int(leading.group(1))
            result.qty_ambiguous = True
            scan.consume(leading.start(), leading.end())

    # -- operations ---------------------------------------------------------

    def _extract_grooves(self, scan: _Scan, result: ExtractionResult) -> None:
        for match in self._groove_code.finditer(scan.masked):
            width, depth = parse_decimal(match.group(2)), parse_decimal(match.group(3))
            result.grooves.append(GrooveOp(side=match.group(1).upper(), width_mm=width, depth_mm=depth))
            scan.consume(match.start(), match.end())

        default_side, default_width, default_depth = self.vocabulary.default_groove
        for match in self._groove_keyword.finditer(scan.masked):
            scan.consume(match.start(), match.end())
            text = scan.masked
            clause_end = self._clause_end.search(text, match.end())
            stop = clause_end.start() if clause_end else len(text)

            side, width, depth = default_side, default_width, default_depth
            side_match = self._groove_side.search(text, match.end(), stop)
            if side_match:
                side = side_match.group(1).upper()
                scan.consume(side_match.start(), side_match.end())
            width_match = self._groove_width.search(text, match.end(), stop)
            if width_match:
                width = parse_decimal(width_match.group(1))
                scan.consume(width_match.start(), width_match.end())
            depth_match = self._groove_depth.search(text, match.end(), stop)
            if depth_match:
                depth = parse_decimal(depth_match.group(1))
                scan.consume(depth_match.start(), depth_match.end())

            groove = GrooveOp(side=side, width_mm=width, depth_mm=depth)
            if groove not in result.grooves:
                result.grooves.append(groove)

    def _extract_holes(self, scan: _Scan, result: ExtractionResult) -> None:
        face = "back" if self._back_face.search(scan.masked) else "front"
        for pattern, pattern_id in self._hole_phrases:
            for match in pattern.finditer(scan.masked):
                text = scan.masked
                if not text[match.start():match.end()].strip():
                    continue
                scan.consume(match.start(), match.end())
                spacing = self._spacing_before.search(text[:match.start()])
                offset = 0
                if spacing is None:
                    spacing = self._spacing_after.match(text[match.end():])
                    offset = match.end()
                hole_id = pattern_id
                if spacing is not None:
                    hole_id = f"{pattern_id}_{spacing.group(1)}"
                    scan.consume(offset + spacing.start(), offset + spacing.end())
                hole = HoleOp(pattern=hole_id, face=face)
                if hole not in result.holes:
                    result.holes.append(hole)
        if result.holes:
            for match in self._back_face.finditer(scan.masked):
                scan.consume(match.start(), match.end())

    def _extract_cnc(self, scan: _Scan, result: ExtractionResult) -> None:
        for pattern, program in self._cnc_keywords:
            for match in pattern.finditer(scan.masked):
                scan.consume(match.start(), match.end())
                if CncOp(program) not in result.cnc:
                    result.cnc.append(CncOp(program))
        for match in self._cnc_program.finditer(scan.masked):
            scan.consume(match.start(), match.end())
            op = CncOp(match.group(1))
            if op not in result.cnc:
                result.cnc.append(op)
        for match in self._cnc_bare.finditer(scan.masked):
            scan.consume(match.start(), match.end())

    def _extract_edges(self, scan: _Scan, result: ExtractionResult) -> None:
        edges = set()

        code = self._edgeband_code.search(scan.masked)
        if code:
            result.edgeband_id = code.group(0).upper()
            scan.consume(code.start(), code.end())

        for pattern, phrase_edges in self._edge_phrases:
            for match in pattern.finditer(scan.masked):
                edges.update(phrase_edges)
                scan.consume(match.start(), match.end())

        for match in self._edge_ids.finditer(scan.masked):
            token = match.group(1).upper()
            edges.update(token[i:i + 2] for i in range(0, len(token), 2))
            scan.consume(match.start(), match.end())

        for match in self._edge_counts.finditer(scan.masked):
            long_count = int(match.group(1) or match.group(3) or 0)
            short_count = int(match.group(2) or match.group(4) or 0)
            edges.update(("L1", "L2")[:long_count])
            edges.update(("W1", "W2")[:short_count])
            scan.consume(match.start(), match.end())

        bare = list(self._bare_edges.finditer(scan.masked))
        for match in bare:
            scan.consume(match.start(), match.end())
        if not edges and (bare or result.edgeband_id):
            edges.update(ALL_EDGES)
            if bare and not result.edgeband_id:
                result.warnings.append(BARE_EDGE_WARNING)

        result.edges = tuple(edge for edge in EDGE_IDS if edge in edges)

    # -- thickness, material, grain -----------------------------------------

    def _extract_thickness(self, scan: _Scan, result: ExtractionResult) -> None:
        if result.thickness_mm is not None:
            return
        text = scan.masked
        for pattern in self._thickness_patterns:
            match = pattern.search(text)
            if match:
                value = parse_decimal(match.group(1))
                if value is not None and 0 < value <= MAX_EXPLICIT_THICKNESS_MM:
                    result.thickness_mm = value
                    scan.consume(match.start(), match.end())
                    return
        for match in self._standalone_mm.finditer(text):
            value = parse_decimal(match.group(1))
            if value is not None and MIN_STANDALONE_THICKNESS_MM <= value <= MAX_STANDALONE_THICKNESS_MM:
                result.thickness_mm = value
                scan.consume(match.start(), match.end())
                return

    def _extract_material(self, scan: _Scan, result: ExtractionResult) -> None:
        code = self._material_code.search(scan.masked)
        if code:
            result.material_id = code.group(0).upper()
            scan.consume(code.start(), code.end())
            return

        best = None
        for order, (pattern, material_id) in enumerate(self._materials):
            match = pattern.search(scan.masked)
            if match is None:
                continue
            key = (match.start(), -(match.end() - match.start()), order)
            if best is None or key < best[0]:
                best = (key, match, material_id)
        if best is not None:
            _, match, material_id = best
            result.material_id = material_id
            scan.consume(match.start(), match.end())

    def _extract_grain(self, scan: _Scan, result: ExtractionResult) -> None:
        best = None
        for pattern, grain in self._grain_phrases:
            match = pattern.search(scan.masked)
            if match and (best is None or match.start() < best[0].start()):
                best = (match, grain)
        if best is not None:
            match, grain = best
            result.grain = grain
            scan.consume(match.start(), match.end())

    def _extract_rotation_lock(self, scan: _Scan, result: ExtractionResult) -> None:
        """"fixed", "no rotation" and the like pin the part as given."""
        match = self._rotation_lock.search(scan.masked)
        if match is None:
            return
        if result.grain == GRAIN_NONE:
            result.grain = ROTATION_LOCK_GRAIN
        scan.consume(match.start(), match.end())

    # -- label --------------------------------------------------------------

    def _extract_label(self, scan: _Scan, dim_start: int) -> Optional[str]:
        text = scan.masked
        words = _trim_words(tokenize_words(text[:max(dim_start, 0)]))
        if not words:
            words = _trim_words(tokenize_words(text))
        if not words:
            return None
        return " ".join(words)[:MAX_LABEL_LENGTH].rstrip()


def _trim_words(words: List[str]) -> List[str]:
    words = [w.strip(".-/'") for w in words]
    words = [w for w in words if w]
    while words and words[0].lower() in LABEL_EDGE_WORDS:
        words.pop(0)
    while words and words[-1].lower() in LABEL_EDGE_WORDS:
        words.pop()
    return words
