"""Canonical target fields for tabular column mapping."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

LENGTH = "length"
WIDTH = "width"
QUANTITY = "quantity"
LABEL = "label"
MATERIAL = "material"
THICKNESS = "thickness"
GRAIN = "grain"
EDGEBANDING = "edgebanding"
EDGE_L1 = "edge_L1"
EDGE_L2 = "edge_L2"
EDGE_W1 = "edge_W1"
EDGE_W2 = "edge_W2"
GROOVES = "grooves"
HOLES = "holes"
CNC = "cnc"
GROUP = "group"
NOTES = "notes"

REQUIRED_FIELDS = (LENGTH, WIDTH)
EDGE_FIELDS = {EDGE_L1: "L1", EDGE_L2: "L2", EDGE_W1: "W1", EDGE_W2: "W2"}


@dataclass(frozen=True)
class TargetField:
    """A canonical field and the header keywords that suggest it."""
    id: str
    label: str
    keywords: Tuple[str, ...]
    required: bool = False

    @property
    def match_terms(self) -> Tuple[str, ...]:
        """Keywords plus the field id itself."""
        return self.keywords + (self.id,)


# Priority order: the resolver assigns headers to fields in this order
TARGET_FIELDS: Tuple[TargetField, ...] = (
    TargetField(LENGTH, "Length", ("length", "len", "l", "long", "dimension1", "length mm", "l mm", "height"), True),
    TargetField(WIDTH, "Width", ("width", "wid", "w", "wide", "dimension2", "width mm", "w mm", "breadth"), True),
    TargetField(QUANTITY, "Quantity", ("qty", "quantity", "count", "pcs", "pieces", "no off", "#", "amount")),
    TargetField(LABEL, "Part Name", ("name", "label", "part", "part name", "description", "desc", "component", "item")),
    TargetField(MATERIAL, "Material", ("material", "mat", "board", "stock", "substrate", "material code", "material id")),
    TargetField(THICKNESS, "Thickness", ("thickness", "thick", "thk", "t", "t mm")),
    TargetField(GRAIN, "Grain", ("grain", "direction", "dir", "grain direction", "gl", "gw")),
    TargetField(EDGEBANDING, "Edge Banding", ("edgebanding", "edge banding", "edging", "edges", "edge", "banding", "eb", "tape")),
    TargetField(EDGE_L1, "Edge L1", ("l1", "edge l1", "eb l1", "long edge 1")),
    TargetField(EDGE_L2, "Edge L2", ("l2", "edge l2", "eb l2", "long edge 2")),
    TargetField(EDGE_W1, "Edge W1", ("w1", "edge w1", "eb w1", "short edge 1")),
    TargetField(EDGE_W2, "Edge W2", ("w2", "edge w2", "eb w2", "short edge 2")),
    TargetField(GROOVES, "Grooves", ("groove", "grooves", "grooving", "dado", "rebate")),
    TargetField(HOLES, "Holes", ("holes", "hole", "drilling", "drill", "boring")),
    TargetField(CNC, "CNC", ("cnc", "program", "cnc program", "machining", "operations")),
    TargetField(GROUP, "Group", ("group", "cabinet", "unit", "assembly", "section")),
    TargetField(NOTES, "Notes", ("notes", "note", "comment", "comments", "remark", "remarks", "info")),
)

FIELD_IDS: Tuple[str, ...] = tuple(f.id for f in TARGET_FIELDS)


def get_field(field_id: str, fields: Iterable[TargetField] = TARGET_FIELDS) -> Optional[TargetField]:
    for target in fields:
        if target.id == field_id:
            return target
    return None


def extend_fields(
    extra_keywords: Optional[Dict[str, Iterable[str]]] = None,
    fields: Tuple[TargetField, ...] = TARGET_FIELDS,
) -> Tuple[TargetField, ...]:
    """
    Return a copy of ``fields`` with extra header keywords appended.

    Args:
        extra_keywords: field id -> additional keywords (``headers.json``)
        fields: Base field table

    Returns:
        New field table in the same priority order; unknown ids are ignored
    """
    extra_keywords = extra_keywords or {}
    extended: List[TargetField] = []
    for target in fields:
        additions = tuple(
            k.strip().lower() for k in extra_keywords.get(target.id, ()) if k and k.strip().lower() not in target.keywords
        )
        extended.append(replace(target, keywords=target.keywords + additions) if additions else target)
    return tuple(extended)
