"""Batch parsing of multi-line cutlist text."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from loguru import logger

from core.error_handler import log_execution_time
from core.exceptions import ContractViolationError

from .models import BatchResult, ParseContext
from .parser import CutlistParser, check_context, default_parser
from .text_utils import is_noise, split_lines


class BatchParser:
    """Runs the line parser over every non-empty line of a text block.

    Lines are independent: a line that fails never changes the result of
    another, and results keep input order whether or not a thread pool is
    used.
    """

    def __init__(self, parser: Optional[CutlistParser] = None, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and (isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1):
            raise ContractViolationError("max_workers must be a positive integer")
        self.parser = parser or default_parser()
        self.max_workers = max_workers

    @log_execution_time(level="DEBUG", label="parse_batch")
    def parse(self, text: str, context: Optional[ParseContext] = None) -> BatchResult:
        """
        Parse every non-empty line of ``text``.

        Args:
            text: Multi-line input, any line ending
            context: Shared defaults for every line

        Returns:
            BatchResult with one entry per non-empty line, in order
        """
        if text is None or not isinstance(text, str):
            raise ContractViolationError("text must be a string")
        context = check_context(context)

        lines = [(number, line) for number, line in split_lines(text) if not is_noise(line.strip())]

        def parse_one(item):
            number, line = item
            return self.parser.parse_line(line, context, index=number)

        if self.max_workers and self.max_workers > 1 and len(lines) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(parse_one, lines))
        else:
            results = [parse_one(item) for item in lines]

        batch = BatchResult(results=results)
        logger.info(
            f"Parsed {len(results)} lines: {batch.success_count} parts, {batch.error_count} errors, "
            f"{batch.total_pieces} pieces"
        )
        return batch


def parse_batch(text: str, context: Optional[ParseContext] = None, max_workers: Optional[int] = None) -> BatchResult:
    """Parse a block of text with the default parser."""
    return BatchParser(max_workers=max_workers).parse(text, context)
