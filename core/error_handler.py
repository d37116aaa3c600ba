"""Decorators shared by the use case layer."""
from __future__ import annotations

import functools
import time
from typing import Callable

from loguru import logger


def log_execution_time(level: str = "DEBUG", label: str = ""):
    """Log how long the wrapped call took.

    Args:
        level: loguru level name used for the timing line
        label: Name to log instead of the function name
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start_time
                logger.log(level.upper(), f"{label or func.__name__} executed in {elapsed:.3f}s")
        return wrapper
    return decorator
