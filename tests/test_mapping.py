"""Unit tests for column mapping."""
import pytest

from core.exceptions import ContractViolationError, MappingIncompleteError
from tabular.fields import TARGET_FIELDS, extend_fields, get_field
from tabular.mapping import ColumnMapping, ColumnMappingResolver, resolve_mapping


class TestResolveMapping:
    """Tests for the greedy resolver."""

    def test_common_headers(self):
        # Act
        mapping = resolve_mapping(["Length (mm)", "Width", "Qty", "Material Code"])

        # Assert
        assert mapping.as_header_dict() == {
            "length": "Length (mm)",
            "width": "Width",
            "quantity": "Qty",
            "material": "Material Code",
        }
        assert mapping.is_complete
        assert mapping.scores["width"] == 1.0
        assert mapping.scores["length"] >= 0.8

    def test_resolution_is_deterministic(self):
        headers = ["Part", "L", "W", "Thk", "Edges", "Notes"]

        assert resolve_mapping(headers) == resolve_mapping(headers)

    def test_each_column_used_once_and_ties_go_left(self):
        mapping = resolve_mapping(["Length", "Length", "Width"])

        assert mapping.column_for("length") == 0
        assert mapping.column_for("width") == 2
        assert len(set(mapping.columns.values())) == len(mapping.columns)

    def test_short_headers(self):
        mapping = resolve_mapping(["Name", "L", "W", "Qty"])

        assert mapping.column_for("label") == 0
        assert mapping.column_for("length") == 1
        assert mapping.column_for("width") == 2
        assert mapping.column_for("quantity") == 3

    def test_incomplete_mapping(self):
        mapping = resolve_mapping(["Name", "Qty"])

        assert not mapping.is_complete
        assert mapping.missing_required == ["length", "width"]
        with pytest.raises(MappingIncompleteError) as exc_info:
            mapping.require_complete()
        assert exc_info.value.missing == ["length", "width"]

    def test_low_scores_are_not_assigned(self):
        mapping = resolve_mapping(["Length", "Width", "zzzz"])

        assert 2 not in mapping.columns.values()

    def test_extra_keywords_from_config(self):
        fields = extend_fields({"length": ["langd"], "width": ["bredd"]})
        mapping = ColumnMappingResolver(fields).resolve(["Langd", "Bredd"])

        assert mapping.as_header_dict() == {"length": "Langd", "width": "Bredd"}
        assert get_field("length", fields).keywords[-1] == "langd"
        assert "langd" not in get_field("length", TARGET_FIELDS).keywords

    def test_string_headers_rejected(self):
        with pytest.raises(ContractViolationError):
            resolve_mapping("Length,Width")


class TestColumnMapping:
    """Tests for manual adjustment of a mapping."""

    def test_from_assignments_by_header_and_index(self):
        mapping = ColumnMapping.from_assignments(["A", "B", "C"], {"length": "a", "width": 1})

        assert mapping.column_for("length") == 0
        assert mapping.column_for("width") == 1
        assert mapping.is_complete

    def test_from_assignments_rejects_shared_column(self):
        with pytest.raises(ContractViolationError):
            ColumnMapping.from_assignments(["A", "B"], {"length": "A", "width": "A"})

    def test_from_assignments_rejects_unknown_header_or_field(self):
        with pytest.raises(ContractViolationError):
            ColumnMapping.from_assignments(["A", "B"], {"length": "Z"})
        with pytest.raises(ContractViolationError):
            ColumnMapping.from_assignments(["A", "B"], {"colour": "A"})

    def test_assign_moves_column_to_new_field(self):
        mapping = resolve_mapping(["Length", "Width", "Qty"])

        adjusted = mapping.assign("thickness", "Qty")

        assert adjusted.column_for("thickness") == 2
        assert not adjusted.is_mapped("quantity")
        assert mapping.is_mapped("quantity")

    def test_unassign(self):
        mapping = resolve_mapping(["Length", "Width"]).unassign("width")

        assert mapping.missing_required == ["width"]

    def test_to_dict(self):
        data = resolve_mapping(["Length", "Width"]).to_dict()

        assert data["mapping"] == {"length": "Length", "width": "Width"}
        assert data["columns"] == {"length": 0, "width": 1}
        assert data["missing_required"] == []
