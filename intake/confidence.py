"""Confidence scoring for parsed lines and rows."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from core.exceptions import ConfigurationError

MIN_REASONABLE_DIMENSION_MM = 10.0
MAX_REASONABLE_DIMENSION_MM = 5000.0


@dataclass(frozen=True)
class ScoringWeights:
    """Additive penalties subtracted from a baseline of 1.0."""
    material_default: float = 0.20
    quantity_default: float = 0.10
    thickness_default: float = 0.0
    ambiguous_quantity: float = 0.05
    unusual_dimensions: float = 0.05
    floor: float = 0.10

    def __post_init__(self):
        penalties = (
            self.material_default,
            self.quantity_default,
            self.thickness_default,
            self.ambiguous_quantity,
            self.unusual_dimensions,
        )
        if any(p < 0 or p > 1 for p in penalties):
            raise ConfigurationError("Scoring penalties must be between 0 and 1")
        if not 0 < self.floor <= 1:
            raise ConfigurationError("Scoring floor must be in (0, 1]")


@dataclass(frozen=True)
class ExtractionSignals:
    """Which fields of a part were stated explicitly."""
    length_mm: float
    width_mm: float
    material_explicit: bool = False
    quantity_explicit: bool = False
    thickness_explicit: bool = False
    quantity_ambiguous: bool = False


class ConfidenceScorer:
    """Turns explicit-vs-defaulted signals into a confidence in ``[floor, 1]``.

    Only parts with both dimensions are scored; lines without dimensions
    get 0.0 from the parser and never reach this class.
    """

    def __init__(self, weights: ScoringWeights = ScoringWeights()) -> None:
        self.weights = weights

    def score(self, signals: ExtractionSignals) -> Tuple[float, List[str]]:
        """
        Score one part.

        Args:
            signals: Explicit/defaulted flags and the parsed dimensions

        Returns:
            Tuple of (confidence, review notes)
        """
        confidence = 1.0
        notes: List[str] = []

        if not signals.material_explicit:
            confidence -= self.weights.material_default
            notes.append("material_defaulted")
        if not signals.quantity_explicit:
            confidence -= self.weights.quantity_default
            notes.append("quantity_defaulted")
        if not signals.thickness_explicit:
            confidence -= self.weights.thickness_default
            notes.append("thickness_defaulted")
        if signals.quantity_ambiguous:
            confidence -= self.weights.ambiguous_quantity
            notes.append("quantity_ambiguous")
        if not self.dimensions_reasonable(signals.length_mm, signals.width_mm):
            confidence -= self.weights.unusual_dimensions
            notes.append("dimensions_unusual")

        confidence = max(self.weights.floor, min(confidence, 1.0))
        return round(confidence, 4), notes

    @staticmethod
    def dimensions_reasonable(length_mm: float, width_mm: float) -> bool:
        return all(
            MIN_REASONABLE_DIMENSION_MM <= value <= MAX_REASONABLE_DIMENSION_MM
            for value in (length_mm, width_mm)
        )
