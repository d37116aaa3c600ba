"""
Data model for parsed cutlist parts.

Both ingestion paths (free text and tabular rows) emit the records defined
here. A ``CutPart`` is only built once both dimensions are known; everything
else a parser has to say about a line or row travels in ``ParseResult``.

Classes:
    ParseContext: Caller-supplied defaults and ingestion channel
    PartSize: Length/width pair in millimetres
    EdgeOps, GrooveOp, HoleOp, CncOp, PartOps: Fabrication operations
    PartAudit: Provenance and confidence of a part
    CutPart: The normalized part record
    ParseError: Advisory error attached to a line or row
    ParseResult: Outcome of parsing one line or row
    BatchResult: Ordered outcomes of a multi-line parse
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import ContractViolationError

GRAIN_NONE = "none"
GRAIN_ALONG_L = "along_L"
GRAIN_ALONG_W = "along_W"
GRAIN_MODES = (GRAIN_NONE, GRAIN_ALONG_L, GRAIN_ALONG_W)

SOURCE_METHODS = frozenset({
    "text",
    "paste_parser",
    "voice",
    "file_upload",
    "excel_table",
    "tabular",
    "manual",
    "api",
})

EDGE_IDS = ("L1", "L2", "W1", "W2")


def new_part_id() -> str:
    """Generate an opaque part identifier."""
    return f"P-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ParseContext:
    """Defaults and channel information shared by every line of a parse.

    Attributes:
        source_method: Ingestion channel recorded in ``audit.source_method``
        default_material_id: Material used when none is recognized
        default_thickness_mm: Thickness used when none is recognized
        default_edgeband_id: Edgeband attached to detected edging
    """
    source_method: str = "paste_parser"
    default_material_id: str = "MAT-WHITE-18"
    default_thickness_mm: float = 18.0
    default_edgeband_id: str = "EB-WHITE-0.8"

    def __post_init__(self):
        if self.source_method not in SOURCE_METHODS:
            raise ContractViolationError(f"Unknown source_method: {self.source_method!r}")
        if not isinstance(self.default_material_id, str) or not self.default_material_id.strip():
            raise ContractViolationError("default_material_id must be a non-empty string")
        if isinstance(self.default_thickness_mm, bool) or not isinstance(self.default_thickness_mm, (int, float)):
            raise ContractViolationError("default_thickness_mm must be a number")
        if self.default_thickness_mm <= 0:
            raise ContractViolationError("default_thickness_mm must be positive")

    @property
    def is_voice(self) -> bool:
        return self.source_method == "voice"


@dataclass(frozen=True)
class PartSize:
    L: float
    W: float

    def to_dict(self) -> Dict[str, float]:
        return {"L": self.L, "W": self.W}


@dataclass
class EdgeOps:
    """Edge-banding flags per edge (L1/L2 long edges, W1/W2 short edges)."""
    L1: bool = False
    L2: bool = False
    W1: bool = False
    W2: bool = False
    edgeband_id: Optional[str] = None

    @property
    def edges(self) -> List[str]:
        return [edge for edge in EDGE_IDS if getattr(self, edge)]

    def any(self) -> bool:
        return bool(self.edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edges": {edge: {"apply": True, "edgeband_id": self.edgeband_id} for edge in self.edges},
        }


@dataclass(frozen=True)
class GrooveOp:
    side: str
    width_mm: float
    depth_mm: float

    def to_dict(self) -> Dict[str, Any]:
        return {"side": self.side, "width_mm": self.width_mm, "depth_mm": self.depth_mm}


@dataclass(frozen=True)
class HoleOp:
    pattern: str
    face: str = "front"

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern": self.pattern, "face": self.face}


@dataclass(frozen=True)
class CncOp:
    program: str

    def to_dict(self) -> Dict[str, Any]:
        return {"program": self.program}


@dataclass
class PartOps:
    """Detected operations; a category is only present when populated."""
    edging: Optional[EdgeOps] = None
    grooves: List[GrooveOp] = field(default_factory=list)
    holes: List[HoleOp] = field(default_factory=list)
    cnc: List[CncOp] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (self.edging is None or not self.edging.any()) and not (self.grooves or self.holes or self.cnc)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.edging is not None and self.edging.any():
            data["edging"] = self.edging.to_dict()
        if self.grooves:
            data["grooves"] = [g.to_dict() for g in self.grooves]
        if self.holes:
            data["holes"] = [h.to_dict() for h in self.holes]
        if self.cnc:
            data["custom_cnc_ops"] = [c.to_dict() for c in self.cnc]
        return data


@dataclass
class PartAudit:
    source_method: str
    confidence: float
    human_verified: bool = False
    source_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_method": self.source_method,
            "confidence": self.confidence,
            "human_verified": self.human_verified,
            "source_ref": self.source_ref,
        }


@dataclass
class CutPart:
    """
    Normalized part record handed to the review stage.

    Attributes:
        size: Length/width in millimetres, both strictly positive
        qty: Positive piece count
        thickness_mm: Board thickness in millimetres
        material_id: Material identifier (recognized or defaulted)
        grain: One of ``GRAIN_MODES``
        allow_rotation: False whenever the grain is fixed
        ops: Detected operations or None
        audit: Provenance and confidence
        part_id: Opaque identifier, not part of equality
    """
    size: PartSize
    qty: int
    thickness_mm: float
    material_id: str
    grain: str
    allow_rotation: bool
    audit: PartAudit
    label: Optional[str] = None
    ops: Optional[PartOps] = None
    group_id: Optional[str] = None
    notes: Optional[str] = None
    part_id: str = field(default_factory=new_part_id, compare=False)

    def __post_init__(self):
        if not (self.size.L > 0 and self.size.W > 0):
            raise ContractViolationError("CutPart requires positive length and width")
        if self.grain not in GRAIN_MODES:
            raise ContractViolationError(f"Unknown grain mode: {self.grain!r}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "part_id": self.part_id,
            "label": self.label,
            "qty": self.qty,
            "size": self.size.to_dict(),
            "thickness_mm": self.thickness_mm,
            "material_id": self.material_id,
            "grain": self.grain,
            "allow_rotation": self.allow_rotation,
            "audit": self.audit.to_dict(),
        }
        if self.ops is not None and not self.ops.is_empty():
            data["ops"] = self.ops.to_dict()
        if self.group_id:
            data["group_id"] = self.group_id
        if self.notes:
            data["notes"] = {"operator": self.notes}
        return data


@dataclass(frozen=True)
class ParseError:
    """Advisory error for a line (1-based) or row (raw row index)."""
    index: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "message": self.message}


@dataclass
class ParseResult:
    """Outcome of parsing one line or row."""
    index: int
    source_text: str
    part: Optional[CutPart] = None
    errors: List[ParseError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def ok(self) -> bool:
        return self.part is not None

    @property
    def messages(self) -> List[str]:
        return [error.message for error in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "source_text": self.source_text,
            "part": self.part.to_dict() if self.part is not None else None,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "confidence": self.confidence,
        }


@dataclass
class BatchResult:
    """Ordered per-line results plus aggregate counts."""
    results: List[ParseResult] = field(default_factory=list)

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
    def total_pieces(self) -> int:
        return sum(part.qty for part in self.parts)

    @property
    def average_confidence(self) -> float:
        scores = [r.confidence for r in self.results if r.ok]
        return sum(scores) / len(scores) if scores else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "stats": {
                "total_lines": len(self.results),
                "success_count": self.success_count,
                "error_count": self.error_count,
                "total_pieces": self.total_pieces,
                "average_confidence": round(self.average_confidence, 4),
            },
        }
