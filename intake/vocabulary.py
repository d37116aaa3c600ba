"""Static keyword tables used by the token extractor and the row parser.

Every table maps a phrase (a regular expression source, matched
case-insensitively on word boundaries) to a canonical value. Tables are
tuples and read-only mappings; ``Vocabulary.extended`` returns a new
instance instead of mutating one.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .models import GRAIN_ALONG_L, GRAIN_ALONG_W

# keyword -> material id; order only matters for equal position and length
MATERIAL_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("white melamine", "white-melamine"),
    ("white mel", "white-melamine"),
    ("wht mel", "white-melamine"),
    ("white board", "white-melamine"),
    ("white", "white-melamine"),
    ("black melamine", "black-melamine"),
    ("black mel", "black-melamine"),
    ("blk mel", "black-melamine"),
    ("black", "black-melamine"),
    ("grey melamine", "grey-melamine"),
    ("gray melamine", "grey-melamine"),
    ("grey mel", "grey-melamine"),
    ("grey", "grey-melamine"),
    ("gray", "grey-melamine"),
    ("white oak", "oak"),
    ("red oak", "oak"),
    ("oak", "oak"),
    ("american walnut", "walnut"),
    ("walnut", "walnut"),
    ("hard maple", "maple"),
    ("maple", "maple"),
    ("american cherry", "cherry"),
    ("cherry", "cherry"),
    ("baltic birch", "birch"),
    ("birch", "birch"),
    ("beech", "beech"),
    ("ash", "ash"),
    ("pine", "pine"),
    ("medium density", "mdf"),
    ("mdf", "mdf"),
    ("high density", "hdf"),
    ("hdf", "hdf"),
    ("particle board", "pb"),
    ("particleboard", "pb"),
    ("chipboard", "pb"),
    ("marine ply", "plywood"),
    ("plywood", "plywood"),
    ("ply", "plywood"),
    ("oriented strand", "osb"),
    ("osb", "osb"),
    ("high pressure laminate", "hpl"),
    ("formica", "hpl"),
    ("hpl", "hpl"),
    ("melamine", "melamine"),
    ("mel", "melamine"),
)

GRAIN_PHRASES: Tuple[Tuple[str, str], ...] = (
    (r"grain\s*(?:along\s*(?:the\s*)?)?length", GRAIN_ALONG_L),
    (r"length\s*grain", GRAIN_ALONG_L),
    (r"gl", GRAIN_ALONG_L),
    (r"grain\s*(?:along\s*(?:the\s*)?)?width", GRAIN_ALONG_W),
    (r"width\s*grain", GRAIN_ALONG_W),
    (r"gw", GRAIN_ALONG_W),
)

ALL_EDGES = ("L1", "L2", "W1", "W2")

# single-edge phrases come before the generic long/short ones
EDGE_PHRASES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (r"all\s*(?:edges?|sides?|round)", ALL_EDGES),
    (r"(?:4|four)\s*(?:edges?|sides?)", ALL_EDGES),
    (r"(?:1|one)\s*long(?:\s*(?:edges?|sides?))?", ("L1",)),
    (r"(?:1|one)\s*short(?:\s*(?:edges?|sides?))?", ("W1",)),
    (r"(?:2|two|both)\s*long(?:\s*(?:edges?|sides?))?", ("L1", "L2")),
    (r"long\s*(?:edges?|sides?)", ("L1", "L2")),
    (r"(?:2|two|both)\s*short(?:\s*(?:edges?|sides?))?", ("W1", "W2")),
    (r"short\s*(?:edges?|sides?)", ("W1", "W2")),
)

# the part must keep the orientation it was given
ROTATION_LOCK_PHRASES: Tuple[str, ...] = (
    r"no\s*rotat(?:e|ion)",
    r"don'?t\s*rotate",
    r"do\s+not\s+rotate",
    r"rotation\s*(?:off|no|false)",
    r"fixed(?!\s+shel(?:f|ves))",
    r"locked",
)

# spoken separators between the two dimensions, besides ``x`` and ``by``
DIMENSION_SEPARATORS: Tuple[str, ...] = (r"times", r"cross", r"multiplied\s+by")

# verbs that introduce a count in dictated lines: "need 4 720 by 560"
QUANTITY_VERBS: Tuple[str, ...] = (r"need", r"make", r"cut")

# keyword alone, without any side information
BARE_EDGE_KEYWORDS: Tuple[str, ...] = (r"edge\s*band(?:ed|ing|s)?", r"edging", r"edged", r"edges?", r"banded", r"eb")

GROOVE_KEYWORDS: Tuple[str, ...] = (r"groove[sd]?", r"grooving", r"dado", r"rebate")

DEFAULT_GROOVE: Tuple[str, float, float] = ("W2", 4.0, 10.0)

# phrase -> hole pattern id; a spacing value is appended when one is found
HOLE_PHRASES: Tuple[Tuple[str, str], ...] = (
    (r"shelf\s*pins?(?:\s*holes?)?", "shelf_pins"),
    (r"hinge\s*(?:holes?|cups?|bor(?:e|ing))", "hinge_cups"),
    (r"system\s*holes?", "system"),
    (r"line\s*bor(?:e|ing)", "system"),
    (r"holes?", "holes"),
    (r"drill(?:ed|ing)?", "holes"),
)

CNC_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    (r"sink\s*cut[\s-]?out", "sink_cutout"),
    (r"hob\s*cut[\s-]?out", "hob_cutout"),
    (r"radius\s*corners?", "corner_radius"),
    (r"pocket(?:ing)?", "pocket"),
)

NUMBER_WORDS: Mapping[str, int] = MappingProxyType({
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50, "sixty": 60,
    "seventy": 70, "eighty": 80, "ninety": 90,
    "hundred": 100, "thousand": 1000,
})

MISHEARD_NUMBER_TOKENS: Mapping[str, str] = MappingProxyType({
    "to": "two", "too": "two", "for": "four", "fore": "four",
    "won": "one", "ate": "eight", "tree": "three", "free": "three",
    "sex": "six",
})

DECIMAL_TOKENS = frozenset({"point", "dot"})

TRUTHY_MARKERS = frozenset({"yes", "y", "true", "1", "x", "✓", "✔", "on"})
FALSY_MARKERS = frozenset({"no", "n", "false", "0", "-", "none", "off", ""})


def _frozen(pairs: Iterable[Tuple[str, Any]]) -> Tuple[Tuple[str, Any], ...]:
    return tuple((str(k), v) for k, v in pairs)


@dataclass(frozen=True)
class Vocabulary:
    """Read-only bundle of every keyword table the parsers consult."""
    materials: Tuple[Tuple[str, str], ...] = MATERIAL_KEYWORDS
    grain_phrases: Tuple[Tuple[str, str], ...] = GRAIN_PHRASES
    edge_phrases: Tuple[Tuple[str, Tuple[str, ...]], ...] = EDGE_PHRASES
    bare_edge_keywords: Tuple[str, ...] = BARE_EDGE_KEYWORDS
    groove_keywords: Tuple[str, ...] = GROOVE_KEYWORDS
    default_groove: Tuple[str, float, float] = DEFAULT_GROOVE
    hole_phrases: Tuple[Tuple[str, str], ...] = HOLE_PHRASES
    cnc_keywords: Tuple[Tuple[str, str], ...] = CNC_KEYWORDS
    rotation_lock_phrases: Tuple[str, ...] = ROTATION_LOCK_PHRASES
    dimension_separators: Tuple[str, ...] = DIMENSION_SEPARATORS
    quantity_verbs: Tuple[str, ...] = QUANTITY_VERBS
    # mappingproxy is unhashable, so these need a factory
    number_words: Mapping[str, int] = field(default_factory=lambda: NUMBER_WORDS)
    misheard_number_tokens: Mapping[str, str] = field(default_factory=lambda: MISHEARD_NUMBER_TOKENS)
    decimal_tokens: frozenset = DECIMAL_TOKENS
    truthy_markers: frozenset = TRUTHY_MARKERS
    falsy_markers: frozenset = FALSY_MARKERS

    def extended(
        self,
        materials: Optional[Mapping[str, Iterable[str]]] = None,
        hole_patterns: Optional[Mapping[str, str]] = None,
        cnc_programs: Optional[Mapping[str, str]] = None,
    ) -> "Vocabulary":
        """Return a copy with extra keywords placed ahead of the built-ins.

        Args:
            materials: material id -> list of keywords
            hole_patterns: phrase -> hole pattern id
            cnc_programs: phrase -> CNC program id
        """
        extra_materials = [
            (keyword.lower(), material_id)
            for material_id, keywords in (materials or {}).items()
            for keyword in keywords
        ]
        extra_holes = [(re.escape(phrase.lower()), pattern) for phrase, pattern in (hole_patterns or {}).items()]
        extra_cnc = [(re.escape(phrase.lower()), program) for phrase, program in (cnc_programs or {}).items()]
        return replace(
            self,
            materials=_frozen(extra_materials) + self.materials,
            hole_phrases=_frozen(extra_holes) + self.hole_phrases,
            cnc_keywords=_frozen(extra_cnc) + self.cnc_keywords,
        )

    @classmethod
    def from_config_data(
        cls,
        materials_data: Optional[Dict[str, Any]] = None,
        operations_data: Optional[Dict[str, Any]] = None,
    ) -> "Vocabulary":
        """Build a vocabulary from ``materials.json`` / ``operations.json`` payloads."""
        materials_data = materials_data or {}
        operations_data = operations_data or {}
        return cls().extended(
            materials=materials_data.get("materials", {}),
            hole_patterns=operations_data.get("hole_patterns", {}),
            cnc_programs=operations_data.get("cnc_programs", {}),
        )


DEFAULT_VOCABULARY = Vocabulary()
