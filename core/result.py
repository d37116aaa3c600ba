"""Result values returned by the use case layer.

Use cases never raise to the command line; they hand back ``Success`` or
``Failure`` and the caller branches on ``is_failure()`` or chains the next
step with ``and_then``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar('T')
E = TypeVar('E')


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def map(self, fn: Callable[[T], Any]) -> "Result[Any, Exception]":
        """Transform the value; an exception in ``fn`` becomes a Failure."""
        try:
            return Success(fn(self.value))
        except Exception as e:
            return Failure(e)

    def and_then(self, fn: Callable[[T], "Result[Any, Any]"]) -> "Result[Any, Any]":
        """Run the next step, which returns its own Result."""
        return fn(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Failure(Generic[E]):
    error: E

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def map(self, fn: Callable) -> "Failure[E]":
        return self

    def and_then(self, fn: Callable) -> "Failure[E]":
        return self

    def unwrap(self):
        """Raise the wrapped error."""
        if isinstance(self.error, BaseException):
            raise self.error
        raise RuntimeError(str(self.error))

    def unwrap_or(self, default):
        return default


Result = Union[Success[T], Failure[E]]
