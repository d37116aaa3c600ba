"""Unit tests for batch parsing."""
from unittest.mock import Mock

import pytest

from core.exceptions import ContractViolationError
from intake.batch import BatchParser, parse_batch
from intake.models import ParseContext
from intake.parser import CutlistParser, parse_line


@pytest.fixture
def ctx():
    return ParseContext(source_method="paste_parser")


def test_mixed_batch_keeps_order(ctx):
    # Act
    batch = parse_batch("720x560\nbad line\n600x400 qty3", ctx)

    # Assert
    assert [r.ok for r in batch.results] == [True, False, True]
    assert [r.index for r in batch.results] == [1, 2, 3]
    assert batch.success_count == 2
    assert batch.error_count == 1
    assert batch.results[2].part.qty == 3
    assert batch.total_pieces == 4


def test_blank_and_separator_lines_are_skipped_but_numbering_kept(ctx):
    batch = parse_batch("720x560\n\n-----\r\n600x400\r300x200", ctx)

    assert [r.index for r in batch.results] == [1, 4, 5]
    assert [r.part.audit.source_ref for r in batch.results] == ["line:1", "line:4", "line:5"]


def test_lines_are_isolated(ctx):
    alone = parse_line("600x400 qty3", ctx)
    batch = parse_batch("bad line\n600x400 qty3", ctx)

    part = batch.results[1].part
    assert (part.size, part.qty, part.material_id) == (alone.part.size, alone.part.qty, alone.part.material_id)
    assert batch.results[1].confidence == alone.confidence
    assert part.audit.source_ref == "line:2"


def test_parallel_parse_matches_sequential(ctx):
    text = "\n".join(f"{500 + i}x{300 + i} qty {i + 1}" for i in range(20))

    sequential = BatchParser().parse(text, ctx)
    parallel = BatchParser(max_workers=4).parse(text, ctx)

    assert [r.part for r in parallel.results] == [r.part for r in sequential.results]


def test_stats_in_dict(ctx):
    data = parse_batch("720x560 qty 2\nnothing", ctx).to_dict()

    assert data["stats"]["total_lines"] == 2
    assert data["stats"]["success_count"] == 1
    assert data["stats"]["total_pieces"] == 2
    assert data["results"][1]["part"] is None


def test_empty_text_gives_empty_batch(ctx):
    batch = parse_batch("", ctx)

    assert batch.results == []
    assert batch.average_confidence == 0.0


def test_uses_injected_parser(ctx):
    # Arrange
    mock_parser = Mock(spec=CutlistParser)
    mock_parser.parse_line.side_effect = lambda line, context, index: parse_line(line, context)
    batch_parser = BatchParser(parser=mock_parser)

    # Act
    batch_parser.parse("720x560\n600x400", ctx)

    # Assert
    assert mock_parser.parse_line.call_count == 2


@pytest.mark.parametrize("text", [None, 42])
def test_non_string_text_rejected(ctx, text):
    with pytest.raises(ContractViolationError):
        parse_batch(text, ctx)


@pytest.mark.parametrize("workers", [0, -1, True, "2"])
def test_invalid_worker_count_rejected(workers):
    with pytest.raises(ContractViolationError):
        BatchParser(max_workers=workers)
