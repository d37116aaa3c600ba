"""
Cutlist Intake Package for free-text ingestion.

This package turns typed, pasted or dictated cutlist lines into normalized
``CutPart`` records. Each line is normalized, scanned for dimensions,
quantity, material, grain, thickness and fabrication operations, scored for
confidence and emitted together with advisory errors.

Main Components:
    CutlistParser: Line parser composing the extractor and the scorer
    BatchParser: Applies the line parser to every non-empty line
    TokenExtractor: Regex and keyword scanner for one line
    ConfidenceScorer: Additive penalties for defaulted or ambiguous fields
    SpokenNumberParser: Number words to digits for voice transcripts
    TextNormalizer: Separator, quote and spoken-number normalization
    Vocabulary: Immutable keyword tables consulted by the extractor

Features:
    - Dimension formats such as 720x560, 720 by 560, L720 W560
    - Quantity from qty/q/xN/pcs markers or a leading integer
    - Material, grain and thickness from keyword tables
    - Edging, grooves, holes and CNC programs as independent operations
    - Confidence in [0, 1] with a positive floor for every emitted part

Design Philosophy:
    - Malformed input becomes an error value, never an exception
    - No state between lines, so batches can run on a thread pool
    - Keyword tables are data and can be extended from configuration
"""

from __future__ import annotations

from .batch import BatchParser, parse_batch
from .confidence import ConfidenceScorer, ExtractionSignals, ScoringWeights
from .extractor import ExtractionResult, TokenExtractor
from .models import (
    BatchResult,
    CncOp,
    CutPart,
    EdgeOps,
    GrooveOp,
    HoleOp,
    ParseContext,
    ParseError,
    ParseResult,
    PartAudit,
    PartOps,
    PartSize,
)
from .number_parser import SpokenNumberParser, parse_dimension_value
from .parser import CutlistParser, parse_line
from .text_normalizer import TextNormalizer
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

__all__ = [
    # Main parser interface
    "CutlistParser",
    "BatchParser",
    "parse_line",
    "parse_batch",

    # Data model
    "ParseContext",
    "ParseResult",
    "ParseError",
    "BatchResult",
    "CutPart",
    "PartSize",
    "PartAudit",
    "PartOps",
    "EdgeOps",
    "GrooveOp",
    "HoleOp",
    "CncOp",

    # Core parsing components
    "TokenExtractor",
    "ExtractionResult",
    "ConfidenceScorer",
    "ScoringWeights",
    "ExtractionSignals",
    "SpokenNumberParser",
    "TextNormalizer",
    "parse_dimension_value",

    # Vocabulary
    "Vocabulary",
    "DEFAULT_VOCABULARY",
]

__version__ = "0.1.0"
