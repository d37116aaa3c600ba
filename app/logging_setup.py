"""Logging setup for command-line runs.

All modules log through loguru; this module only decides where the
records go: stderr always, plus an optional per-run session file.
"""
from __future__ import annotations

import json
import os
import sys
from datetime import datetime
from typing import Optional

from loguru import logger

SESSION_FORMAT = "[{time:YYYY-MM-DD HH:mm:ss}] {level}: {message}"
STDERR_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def configure_logging(level: str = "INFO") -> int:
    """Replace loguru's default sink with a stderr sink at ``level``.

    Returns:
        The id of the stderr sink
    """
    logger.remove()
    return logger.add(sys.stderr, format=STDERR_FORMAT, level=level.upper())


class SessionLogger:
    """Mirrors loguru output of one run into a timestamped session file."""

    def __init__(self, log_dir: str = "logs/sessions", level: str = "INFO"):
        self.log_dir = log_dir
        os.makedirs(self.log_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%M_%H_%d_%m_%Y")
        self.log_path = os.path.join(self.log_dir, f"cutlist_session_{timestamp}.log")
        self._sink_id: Optional[int] = logger.add(self.log_path, format=SESSION_FORMAT, level=level.upper())
        self._ended = False
        self.log("=== SESSION START ===")

    def log(self, message: str) -> None:
        logger.info(message)

    def log_kv(self, key: str, value) -> None:
        """Log a key-value pair (e.g., configuration)."""
        value_str = json.dumps(value, indent=2, default=str) if isinstance(value, (dict, list)) else str(value)
        self.log(f"{key}: {value_str}")

    def log_end(self) -> None:
        """Mark session end and detach the file sink (idempotent)."""
        if self._ended:
            return
        self._ended = True
        self.log("=== SESSION END ===")
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None
