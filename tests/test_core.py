"""Unit tests for core infrastructure components."""
from pathlib import Path

import pytest
from loguru import logger

import intake
from core.error_handler import log_execution_time
from core.exceptions import (
    ContractViolationError,
    CutlistIntakeException,
    MappingIncompleteError,
    ParsingError,
)
from core.result import Failure, Success


class TestResult:
    """Tests for Result type."""

    def test_success(self):
        # Arrange
        result = Success(42)

        # Assert
        assert result.is_success()
        assert not result.is_failure()
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42

    def test_failure(self):
        # Arrange
        error = ParsingError("boom")
        result = Failure(error)

        # Assert
        assert result.is_failure()
        assert not result.is_success()
        assert result.unwrap_or(0) == 0
        with pytest.raises(ParsingError):
            result.unwrap()

    def test_failure_with_non_exception_error(self):
        with pytest.raises(RuntimeError):
            Failure("bad").unwrap()

    def test_map(self):
        assert Success(2).map(lambda v: v * 3).unwrap() == 6
        failed = Failure(ParsingError("x"))
        assert failed.map(lambda v: v * 3) is failed

    def test_and_then_chains_results(self):
        assert Success(2).and_then(lambda v: Success(v + 1)).unwrap() == 3
        assert Success(2).and_then(lambda v: Failure(ParsingError("x"))).is_failure()
        failed = Failure(ParsingError("x"))
        assert failed.and_then(lambda v: Success(v)) is failed

    def test_map_captures_exception(self):
        result = Success(0).map(lambda v: 1 / v)

        assert result.is_failure()
        assert isinstance(result.error, ZeroDivisionError)


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_all_derive_from_base(self):
        for exc in (ContractViolationError("a"), ParsingError("b"), MappingIncompleteError(["length"])):
            assert isinstance(exc, CutlistIntakeException)

    def test_contract_violation_is_value_error(self):
        assert isinstance(ContractViolationError("a"), ValueError)

    def test_mapping_incomplete_names_fields(self):
        exc = MappingIncompleteError(["length", "width"])

        assert exc.missing == ["length", "width"]
        assert "length, width" in str(exc)


class TestLogExecutionTime:
    """Tests for the timing decorator."""

    def test_returns_value_and_logs(self):
        # Arrange
        messages = []
        sink_id = logger.add(messages.append, level="DEBUG", format="{message}")

        @log_execution_time(level="DEBUG", label="work")
        def work(x):
            return x + 1

        # Act
        try:
            value = work(1)
        finally:
            logger.remove(sink_id)

        # Assert
        assert value == 2
        assert any("work executed in" in m for m in messages)

    def test_logs_even_when_raising(self):
        messages = []
        sink_id = logger.add(messages.append, level="DEBUG", format="{message}")

        @log_execution_time()
        def fail():
            raise ParsingError("nope")

        try:
            with pytest.raises(ParsingError):
                fail()
        finally:
            logger.remove(sink_id)

        assert any("fail executed in" in m for m in messages)


def test_package_version_matches_project_metadata():
    pyproject = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")

    assert f'version = "{intake.__version__}"' in pyproject
