"""
Fuzzy header matching.

Scores how well a raw column header matches a canonical field's keywords:

    1. Exact match after lowercasing and collapsing whitespace: 1.0
    2. Containment in either direction: 0.8, when the shorter of the two
       strings has at least 3 characters
    3. Otherwise normalized Levenshtein similarity,
       ``1 - distance / max(len(a), len(b))``

Containment is a fixed score on purpose so that verbose headers such as
``Length (mm)`` still rank high for ``length``. It makes the matcher
asymmetric in the keyword-list sense; the edit-distance fallback alone is
symmetric.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.8
MIN_CONTAINMENT_LENGTH = 3
CANDIDATE_THRESHOLD = 0.5

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(text: Optional[str]) -> str:
    """Lowercase and collapse whitespace; ``None`` becomes ``""``."""
    if text is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(text)).strip().lower()


def similarity(a: str, b: str, **kwargs) -> float:
    """Score one header against one keyword."""
    a, b = normalize_header(a), normalize_header(b)
    if not a or not b:
        return 0.0
    if a == b:
        return EXACT_SCORE
    shorter = a if len(a) <= len(b) else b
    if len(shorter) >= MIN_CONTAINMENT_LENGTH and (a in b or b in a):
        return CONTAINMENT_SCORE
    return Levenshtein.normalized_similarity(a, b)


def best_keyword(header: str, keywords: Iterable[str]) -> Tuple[Optional[str], float]:
    """
    Find the keyword that best matches ``header``.

    Returns:
        Tuple of (keyword, score); ``(None, 0.0)`` for an empty keyword list
    """
    choices = [k for k in keywords if k]
    if not choices or not normalize_header(header):
        return None, 0.0
    match = process.extractOne(header, choices, scorer=similarity)
    if match is None:
        return None, 0.0
    keyword, score, _ = match
    return keyword, float(score)


def fuzzy_match(header: str, keywords: Iterable[str]) -> float:
    """Best similarity of ``header`` against any of ``keywords``, in [0, 1]."""
    _, score = best_keyword(header, keywords)
    return score


def is_candidate(score: float, threshold: float = CANDIDATE_THRESHOLD) -> bool:
    return score >= threshold
