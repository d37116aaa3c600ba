"""Unit tests for the single-line parser."""
import pytest

from core.exceptions import ContractViolationError
from intake.extractor import BARE_EDGE_WARNING
from intake.models import GRAIN_ALONG_L, ParseContext
from intake.parser import DIMENSIONS_NOT_FOUND, EMPTY_LINE, NON_POSITIVE_QUANTITY, CutlistParser, parse_line


@pytest.fixture
def ctx():
    return ParseContext(source_method="paste_parser", default_material_id="MAT-WHITE-18", default_thickness_mm=18.0)


class TestParseLine:
    """Tests for parse_line."""

    def test_dimensions_and_quantity(self, ctx):
        # Act
        result = parse_line("720x560 qty 2", ctx)

        # Assert
        assert result.ok
        part = result.part
        assert (part.size.L, part.size.W) == (720.0, 560.0)
        assert part.qty == 2
        assert part.material_id == "MAT-WHITE-18"
        assert part.thickness_mm == 18.0
        assert result.confidence == 0.8
        assert part.audit.confidence == 0.8
        assert part.audit.source_ref == "line:1"
        assert part.audit.source_method == "paste_parser"

    def test_voice_style_leading_quantity(self, ctx):
        result = parse_line("2 720 by 560", ctx)

        assert result.part.qty == 2
        assert (result.part.size.L, result.part.size.W) == (720.0, 560.0)
        assert "leading number read as quantity" in result.warnings
        assert result.confidence == 0.75

    def test_label_quantity_and_grain(self, ctx):
        result = parse_line("shelf 560x500 q4 grain length", ctx)

        part = result.part
        assert part.label == "shelf"
        assert part.qty == 4
        assert part.grain == GRAIN_ALONG_L
        assert part.allow_rotation is False

    def test_no_dimensions(self, ctx):
        result = parse_line("no numbers here", ctx)

        assert result.part is None
        assert result.messages == [DIMENSIONS_NOT_FOUND]
        assert result.confidence == 0.0

    @pytest.mark.parametrize("line", ["", "   ", "-----", "==="])
    def test_noise_lines(self, ctx, line):
        result = parse_line(line, ctx)

        assert result.part is None
        assert result.messages == [EMPTY_LINE]

    def test_explicit_material_and_quantity_raise_confidence(self, ctx):
        bare = parse_line("720x560", ctx)
        rich = parse_line("720x560 qty 2 white melamine", ctx)

        assert bare.confidence == pytest.approx(0.7)
        assert rich.confidence == 1.0
        assert rich.part.material_id == "white-melamine"

    def test_non_positive_quantity_defaults_to_one(self, ctx):
        result = parse_line("720x560 qty 0", ctx)

        assert result.ok
        assert result.part.qty == 1
        assert result.messages == [NON_POSITIVE_QUANTITY]

    def test_bare_edging_uses_default_edgeband(self, ctx):
        result = parse_line("door 700x400 edged", ctx)

        edging = result.part.ops.edging
        assert edging.edges == ["L1", "L2", "W1", "W2"]
        assert edging.edgeband_id == ctx.default_edgeband_id
        assert BARE_EDGE_WARNING in result.warnings

    def test_ops_absent_without_operations(self, ctx):
        result = parse_line("720x560", ctx)

        assert result.part.ops is None
        assert "ops" not in result.part.to_dict()

    @pytest.mark.parametrize("line, edges", [("720x560 one long edge", ["L1"]), ("720x560 1 short edge", ["W1"])])
    def test_single_edge_phrases(self, ctx, line, edges):
        assert parse_line(line, ctx).part.ops.edging.edges == edges

    def test_rotation_lock(self, ctx):
        part = parse_line("720x560 fixed", ctx).part

        assert part.allow_rotation is False
        assert part.grain == GRAIN_ALONG_L
        assert part.label is None

    def test_dictated_quantity_and_separator(self, ctx):
        part = parse_line("need 4 720 times 560", ctx).part

        assert part.qty == 4
        assert (part.size.L, part.size.W) == (720.0, 560.0)

    def test_voice_context(self):
        result = parse_line("side seven twenty by five sixty", ParseContext(source_method="voice"))

        assert (result.part.size.L, result.part.size.W) == (720.0, 560.0)
        assert result.part.label == "side"
        assert result.part.audit.source_method == "voice"

    def test_parsing_is_idempotent(self, ctx):
        first = parse_line("side 720x560 18mm white melamine edged", ctx)
        second = parse_line("side 720x560 18mm white melamine edged", ctx)

        # part ids differ, everything else is equal
        assert first.part == second.part
        assert first.part.part_id != second.part.part_id
        assert first.warnings == second.warnings

    def test_default_context(self):
        result = parse_line("720x560")

        assert result.part.audit.source_method == "paste_parser"


class TestContractViolations:
    """Caller misuse raises instead of returning a result."""

    def test_none_text(self, ctx):
        with pytest.raises(ContractViolationError):
            parse_line(None, ctx)

    def test_wrong_context_type(self):
        with pytest.raises(ContractViolationError):
            parse_line("720x560", {"source_method": "text"})

    def test_non_positive_index(self, ctx):
        with pytest.raises(ContractViolationError):
            CutlistParser().parse_line("720x560", ctx, index=0)

    def test_unknown_source_method(self):
        with pytest.raises(ContractViolationError):
            ParseContext(source_method="fax")

    def test_contract_violation_is_value_error(self, ctx):
        with pytest.raises(ValueError):
            parse_line(None, ctx)
