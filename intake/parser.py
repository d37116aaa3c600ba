"""
Line parser for free-text cutlist input.

Each line goes through ``Scan -> Extract -> Validate -> Score -> Emit``.
Malformed input never raises: it produces a ``ParseResult`` without a part
and with advisory errors. Only caller misuse (``None`` text, a context of
the wrong type) raises ``ContractViolationError``.

Classes:
    CutlistParser: Composes the token extractor and the confidence scorer

Functions:
    assemble_part: Shared Validate/Score/Emit step used by both parsers
    parse_line: Parse one line with the default parser
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from loguru import logger

from core.exceptions import ContractViolationError

from .confidence import ConfidenceScorer, ExtractionSignals
from .extractor import ExtractionResult, TokenExtractor
from .models import (
    GRAIN_NONE,
    CutPart,
    EdgeOps,
    ParseContext,
    ParseError,
    ParseResult,
    PartAudit,
    PartOps,
    PartSize,
)
from .text_utils import is_noise
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

EMPTY_LINE = "empty line"
DIMENSIONS_NOT_FOUND = "dimensions not found"
NON_POSITIVE_QUANTITY = "quantity must be positive, defaulted to 1"

# scorer notes surfaced as warnings; the *_defaulted notes are implied by the part
REVIEW_NOTES = {
    "quantity_ambiguous": "leading number read as quantity",
    "dimensions_unusual": "dimensions outside 10-5000 mm",
}


def check_context(context: Optional[ParseContext]) -> ParseContext:
    """Return ``context`` or the default one, rejecting anything else."""
    if context is None:
        return ParseContext()
    if not isinstance(context, ParseContext):
        raise ContractViolationError(f"context must be a ParseContext, got {type(context).__name__}")
    return context


def assemble_part(
    extraction: ExtractionResult,
    context: ParseContext,
    scorer: ConfidenceScorer,
    index: int,
    source_text: str,
    source_ref: str,
    group_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> ParseResult:
    """
    Validate extracted fields, score them and emit the part.

    Args:
        extraction: Fields found in the line or row
        context: Defaults and ingestion channel
        scorer: Confidence scorer to apply
        index: Line number or row index for errors
        source_text: Original text kept on the result
        source_ref: ``line:N`` or ``row:N`` stored in the audit

    Returns:
        ParseResult with a part, or with errors and confidence 0.0
    """
    if not extraction.has_dimensions:
        return ParseResult(
            index=index,
            source_text=source_text,
            errors=[ParseError(index, DIMENSIONS_NOT_FOUND)],
            warnings=list(extraction.warnings),
        )

    errors: List[ParseError] = []
    qty = extraction.qty
    quantity_explicit = qty is not None
    if qty is not None and qty <= 0:
        errors.append(ParseError(index, NON_POSITIVE_QUANTITY))
        qty = None
        quantity_explicit = False

    confidence, review_notes = scorer.score(ExtractionSignals(
        length_mm=extraction.length_mm,
        width_mm=extraction.width_mm,
        material_explicit=extraction.material_id is not None,
        quantity_explicit=quantity_explicit,
        thickness_explicit=extraction.thickness_mm is not None,
        quantity_ambiguous=extraction.qty_ambiguous and quantity_explicit,
    ))

    ops = _build_ops(extraction, context)
    grain = extraction.grain or GRAIN_NONE
    part = CutPart(
        size=PartSize(L=extraction.length_mm, W=extraction.width_mm),
        qty=qty if qty is not None else 1,
        thickness_mm=extraction.thickness_mm if extraction.thickness_mm is not None else context.default_thickness_mm,
        material_id=extraction.material_id or context.default_material_id,
        grain=grain,
        allow_rotation=grain == GRAIN_NONE,
        audit=PartAudit(source_method=context.source_method, confidence=confidence, source_ref=source_ref),
        label=extraction.label,
        ops=ops,
        group_id=group_id,
        notes=notes,
    )

    warnings = list(extraction.warnings) + [REVIEW_NOTES[n] for n in review_notes if n in REVIEW_NOTES]
    return ParseResult(
        index=index,
        source_text=source_text,
        part=part,
        errors=errors,
        warnings=warnings,
        confidence=confidence,
    )


def _build_ops(extraction: ExtractionResult, context: ParseContext) -> Optional[PartOps]:
    if not extraction.has_operations:
        return None
    edging = None
    if extraction.edges:
        edging = EdgeOps(
            edgeband_id=extraction.edgeband_id or context.default_edgeband_id,
            **{edge: True for edge in extraction.edges},
        )
    return PartOps(
        edging=edging,
        grooves=list(extraction.grooves),
        holes=list(extraction.holes),
        cnc=list(extraction.cnc),
    )


class CutlistParser:
    """
    Parses single cutlist lines into ``ParseResult`` records.

    The parser holds only immutable tables and compiled patterns, so one
    instance can serve many threads.

    Usage:
        parser = CutlistParser()
        result = parser.parse_line("shelf 560x500 q4 grain length")
        if result.ok:
            print(result.part.label, result.part.qty)
    """

    def __init__(
        self,
        vocabulary: Vocabulary = DEFAULT_VOCABULARY,
        scorer: Optional[ConfidenceScorer] = None,
        extractor: Optional[TokenExtractor] = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.scorer = scorer or ConfidenceScorer()
        self.extractor = extractor or TokenExtractor(vocabulary)

    def parse_line(self, text: str, context: Optional[ParseContext] = None, index: int = 1) -> ParseResult:
        """
        Parse one line of text.

        Args:
            text: Line to parse
            context: Defaults and channel; ``ParseContext()`` when omitted
            index: 1-based line number used in errors and ``source_ref``

        Returns:
            ParseResult for the line

        Raises:
            ContractViolationError: text is not a string, context has the
                wrong type or index is not a positive integer
        """
        if text is None or not isinstance(text, str):
            raise ContractViolationError("text must be a string")
        if isinstance(index, bool) or not isinstance(index, int) or index < 1:
            raise ContractViolationError("index must be a positive integer")
        context = check_context(context)

        line = text.strip()
        if is_noise(line):
            return ParseResult(index=index, source_text=text, errors=[ParseError(index, EMPTY_LINE)])

        extraction = self.extractor.extract(line, voice=context.is_voice)
        result = assemble_part(
            extraction,
            context,
            self.scorer,
            index=index,
            source_text=text,
            source_ref=f"line:{index}",
        )
        if result.ok:
            part = result.part
            logger.debug(
                f"Line {index}: {part.size.L}x{part.size.W} qty={part.qty} material={part.material_id} "
                f"grain={part.grain} confidence={result.confidence}"
            )
        else:
            logger.debug(f"Line {index}: no part ({'; '.join(result.messages)}) from {extraction.text!r}")
        return result


@lru_cache(maxsize=1)
def default_parser() -> CutlistParser:
    """Shared parser over the built-in vocabulary."""
    return CutlistParser()


def parse_line(text: str, context: Optional[ParseContext] = None) -> ParseResult:
    """Parse one line with the default parser."""
    return default_parser().parse_line(text, context)
