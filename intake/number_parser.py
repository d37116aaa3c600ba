"""Number parsing: spoken number words and dimension values with units."""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

# unit -> millimetres per unit
UNIT_TO_MM = {
    "": 1.0,
    "mm": 1.0,
    "cm": 10.0,
    "m": 1000.0,
    "in": 25.4,
    "inch": 25.4,
    "inches": 25.4,
    '"': 25.4,
}

_TOKEN_RE = re.compile(r"[A-Za-z]+|\d+(?:\.\d+)?|\s+|.", re.DOTALL)
_VALUE_WITH_UNIT_RE = re.compile(
    r'^\s*(\d+(?:[.,]\d+)*)\s*(mm|cm|m|inches|inch|in|")?\s*$',
    re.IGNORECASE,
)


def to_millimeters(value: float, unit: str = "mm") -> float:
    """Convert ``value`` in ``unit`` to millimetres (unknown units count as mm)."""
    factor = UNIT_TO_MM.get((unit or "").strip().lower(), 1.0)
    return round(value * factor, 3)


def parse_decimal(text: str) -> Optional[float]:
    """Parse ``1200``, ``1,200``, ``720.5`` or ``720,5``.

    A comma followed by exactly three digits is a thousands separator,
    any other comma is a decimal separator.
    """
    cleaned = text.strip().replace(" ", "")
    if not cleaned:
        return None
    if re.fullmatch(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?", cleaned):
        cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_dimension_value(text: Optional[str]) -> Optional[float]:
    """Parse a cell or token such as ``720``, ``72 cm`` or ``28.5in`` into mm."""
    if text is None:
        return None
    match = _VALUE_WITH_UNIT_RE.match(str(text))
    if not match:
        return None
    value = parse_decimal(match.group(1))
    if value is None:
        return None
    return to_millimeters(value, match.group(2) or "mm")


def parse_count(text: Optional[str]) -> Optional[int]:
    """Parse a piece count; ``2``, ``2.0`` and ``2 pcs`` all give 2."""
    if text is None:
        return None
    match = re.match(r"^\s*(-?\d+(?:\.\d+)?)", str(text))
    if not match:
        return None
    value = float(match.group(1))
    if value != int(value):
        return None
    return int(value)


class SpokenNumberParser:
    """Converts runs of number words into digits inside a sentence.

    ``"side seven twenty by five sixty"`` becomes ``"side 720 by 560"``.
    Colloquial hundreds (``seven twenty`` = 720), ``hundred``/``thousand``
    multipliers, ``and`` after ``hundred``, and ``point`` decimals are
    understood. Two single digits in a row start a new number.
    """

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        self.vocabulary = vocabulary

    def words_to_numbers(self, tokens: List[str]) -> List[float]:
        """Split a run of number words into the numbers it spells out."""
        words = self.vocabulary.number_words
        numbers: List[float] = []
        total = 0
        current = 0
        last_kind = ""
        decimals = ""
        active = False

        def flush():
            nonlocal total, current, last_kind, decimals, active
            if active:
                value = float(total + current)
                if decimals:
                    value += float("0." + decimals)
                numbers.append(value)
            total, current, last_kind, decimals, active = 0, 0, "", "", False

        for raw in tokens:
            token = raw.lower()
            if token in self.vocabulary.decimal_tokens:
                if active and last_kind != "point" and not decimals:
                    last_kind = "point"
                continue
            if token == "and":
                continue
            value = words[token]

            if last_kind in ("point", "decimal"):
                if value < 10:
                    decimals += str(value)
                    last_kind = "decimal"
                    continue
                flush()

            if value == 1000:
                total += (current or 1) * 1000
                current = 0
                last_kind = "thousand"
            elif value == 100:
                if current and current % 100 == 0:
                    flush()
                    current = 100
                else:
                    current = (current or 1) * 100
                last_kind = "hundred"
            elif value >= 20:
                if last_kind == "unit" and current < 10 and not total:
                    current = current * 100 + value
                elif last_kind in ("", "hundred", "thousand"):
                    current += value
                else:
                    flush()
                    current = value
                last_kind = "tens"
            elif value >= 10:
                if last_kind == "unit" and current < 10 and not total:
                    current = current * 100 + value
                elif last_kind in ("", "hundred", "thousand"):
                    current += value
                else:
                    flush()
                    current = value
                last_kind = "teens"
            else:
                if last_kind == "tens" and current % 10 == 0:
                    current += value
                elif last_kind in ("", "hundred", "thousand"):
                    current += value
                else:
                    flush()
                    current = value
                last_kind = "unit"
            active = True

        flush()
        return numbers

    def replace_spoken_numbers(self, text: str, voice: bool = False) -> str:
        """Rewrite number words in ``text`` as digits.

        Args:
            text: Sentence to rewrite
            voice: Also map misheard tokens (``to``, ``for`` ...) that sit
                next to another number
        """
        tokens = _TOKEN_RE.findall(text)
        if voice:
            tokens = self._apply_misheard(tokens)

        out: List[str] = []
        i = 0
        while i < len(tokens):
            if not self._is_number_word(tokens[i]):
                out.append(tokens[i])
                i += 1
                continue
            run, j = self._collect_run(tokens, i)
            values = self.words_to_numbers(run)
            out.append(" ".join(_format_number(v) for v in values))
            i = j
        return "".join(out)

    def _collect_run(self, tokens: List[str], start: int) -> Tuple[List[str], int]:
        run: List[str] = []
        end = start
        j = start
        while j < len(tokens):
            token = tokens[j]
            lowered = token.lower()
            if token.isspace() or token == "-":
                j += 1
                continue
            if self._is_number_word(token):
                run.append(token)
                end = j + 1
            elif lowered in self.vocabulary.decimal_tokens or lowered == "and":
                if not (j + 1 < len(tokens) and self._next_is_number_word(tokens, j + 1)):
                    break
                run.append(token)
            else:
                break
            j += 1
        return run, end

    def _next_is_number_word(self, tokens: List[str], start: int) -> bool:
        for token in tokens[start:]:
            if token.isspace():
                continue
            return self._is_number_word(token)
        return False

    def _is_number_word(self, token: str) -> bool:
        return token.lower() in self.vocabulary.number_words

    def _apply_misheard(self, tokens: List[str]) -> List[str]:
        significant = [i for i, t in enumerate(tokens) if not t.isspace()]
        fixed = list(tokens)
        for pos, idx in enumerate(significant):
            replacement = self.vocabulary.misheard_number_tokens.get(tokens[idx].lower())
            if replacement is None:
                continue
            neighbours = [tokens[significant[p]] for p in (pos - 1, pos + 1) if 0 <= p < len(significant)]
            if any(self._is_number_word(n) or n[:1].isdigit() for n in neighbours):
                fixed[idx] = replacement
        return fixed


def _format_number(value: float) -> str:
    return str(int(value)) if value == int(value) else f"{value:g}"
