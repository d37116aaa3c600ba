"""Text normalization applied to every line before extraction."""

import re

from .number_parser import SpokenNumberParser
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary


class TextNormalizer:
    """Canonicalizes separators, quotes and spoken numbers."""

    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        """Initialize text normalizer with a vocabulary."""
        self.vocabulary = vocabulary
        self.numbers = SpokenNumberParser(vocabulary)
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Pre-compile regex patterns for efficiency."""
        self._times_pattern = re.compile(r"[\u00d7\u2715\u2716\u2573]")
        self._dash_pattern = re.compile(r"[\u2010-\u2015\u2212]")
        self._double_quote_pattern = re.compile(r"[\u201c\u201d\u2033]")
        self._single_quote_pattern = re.compile(r"[\u2018\u2019\u2032]")
        self._ordinal_pattern = re.compile(r"\b(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
        self._whitespace_pattern = re.compile(r"\s+")

    def normalize(self, text: str, voice: bool = False) -> str:
        """
        Normalize one line of cutlist text.

        Args:
            text: Raw line
            voice: Apply misheard-number corrections for transcripts

        Returns:
            Line with ``x`` separators, ASCII dashes/quotes, digits for
            spoken numbers and single spaces
        """
        if not text:
            return ""

        normalized = self._times_pattern.sub("x", text)
        normalized = self._dash_pattern.sub("-", normalized)
        normalized = self._double_quote_pattern.sub('"', normalized)
        normalized = self._single_quote_pattern.sub("'", normalized)
        normalized = self._whitespace_pattern.sub(" ", normalized).strip()

        normalized = self.numbers.replace_spoken_numbers(normalized, voice=voice)
        if voice:
            normalized = self._ordinal_pattern.sub(r"\1", normalized)

        return self._whitespace_pattern.sub(" ", normalized).strip()
