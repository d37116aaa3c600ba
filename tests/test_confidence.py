import pytest

from core.exceptions import ConfigurationError
from intake.confidence import ConfidenceScorer, ExtractionSignals, ScoringWeights


def _signals(**overrides):
    values = dict(
        length_mm=720.0,
        width_mm=560.0,
        material_explicit=True,
        quantity_explicit=True,
        thickness_explicit=True,
    )
    values.update(overrides)
    return ExtractionSignals(**values)


def test_fully_explicit_part_scores_one():
    confidence, notes = ConfidenceScorer().score(_signals())
    assert confidence == 1.0
    assert notes == []


def test_defaulted_material_costs_more_than_quantity():
    scorer = ConfidenceScorer()
    no_material, _ = scorer.score(_signals(material_explicit=False))
    no_quantity, _ = scorer.score(_signals(quantity_explicit=False))
    assert no_material == 0.8
    assert no_quantity == 0.9


def test_notes_name_each_penalty():
    _, notes = ConfidenceScorer().score(
        _signals(material_explicit=False, thickness_explicit=False, quantity_ambiguous=True, length_mm=6000.0)
    )
    assert notes == ["material_defaulted", "thickness_defaulted", "quantity_ambiguous", "dimensions_unusual"]


def test_score_never_drops_below_floor():
    weights = ScoringWeights(material_default=1.0, quantity_default=1.0)
    confidence, _ = ConfidenceScorer(weights).score(_signals(material_explicit=False, quantity_explicit=False))
    assert confidence == weights.floor


def test_more_explicit_fields_never_lower_the_score():
    scorer = ConfidenceScorer()
    fewer, _ = scorer.score(_signals(material_explicit=False, quantity_explicit=False))
    more, _ = scorer.score(_signals(quantity_explicit=False))
    assert more >= fewer


@pytest.mark.parametrize("kwargs", [{"material_default": -0.1}, {"quantity_default": 1.5}, {"floor": 0.0}])
def test_invalid_weights_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        ScoringWeights(**kwargs)


def test_dimensions_reasonable_bounds():
    assert ConfidenceScorer.dimensions_reasonable(10, 5000)
    assert not ConfidenceScorer.dimensions_reasonable(9.9, 500)
