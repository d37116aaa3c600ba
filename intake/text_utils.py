"""Text utility functions for the cutlist line parser."""

import re
from typing import List, Tuple

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n|\u2028|\u2029")
_NOISE_RE = re.compile(r"^[\s\-_=*#.,;:|/\\~+]*$")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z0-9'&/.-]*")


def split_lines(text: str) -> List[Tuple[int, str]]:
    """
    Split text on any line ending.

    Args:
        text: Multi-line input

    Returns:
        List of (1-based line number, line) pairs, blank lines included
    """
    return [(number, line) for number, line in enumerate(_LINE_SPLIT_RE.split(text), start=1)]


def is_noise(line: str) -> bool:
    """True for empty lines and lines made only of separator characters."""
    return bool(_NOISE_RE.match(line))


def tokenize_words(text: str) -> List[str]:
    """Return the word tokens of ``text`` in order, keeping their case."""
    return _WORD_RE.findall(text)
