import pytest

from intake.number_parser import (
    SpokenNumberParser,
    parse_count,
    parse_decimal,
    parse_dimension_value,
    to_millimeters,
)


@pytest.fixture
def numbers():
    return SpokenNumberParser()


@pytest.mark.parametrize(
    "tokens, expected",
    [
        (["seven", "twenty"], [720.0]),
        (["five", "sixty"], [560.0]),
        (["seven", "hundred", "and", "twenty"], [720.0]),
        (["twelve", "hundred"], [1200.0]),
        (["one", "thousand", "two", "hundred"], [1200.0]),
        (["twenty", "five"], [25.0]),
        (["eighteen", "point", "five"], [18.5]),
        (["two", "seven", "twenty"], [2.0, 720.0]),
    ],
)
def test_words_to_numbers(numbers, tokens, expected):
    assert numbers.words_to_numbers(tokens) == expected


def test_replace_spoken_numbers_in_sentence(numbers):
    assert numbers.replace_spoken_numbers("side seven twenty by five sixty") == "side 720 by 560"


def test_misheard_tokens_only_fixed_for_voice_next_to_numbers(numbers):
    assert numbers.replace_spoken_numbers("shelf to 500") == "shelf to 500"
    assert numbers.replace_spoken_numbers("shelf to 500", voice=True) == "shelf 2 500"
    # no number neighbour, left alone
    assert numbers.replace_spoken_numbers("go to the shop", voice=True) == "go to the shop"


def test_decimal_word_without_following_number_is_kept(numbers):
    assert numbers.replace_spoken_numbers("twenty point") == "20 point"


@pytest.mark.parametrize(
    "text, expected",
    [("1200", 1200.0), ("1,200", 1200.0), ("720.5", 720.5), ("720,5", 720.5), ("", None), ("abc", None)],
)
def test_parse_decimal(text, expected):
    assert parse_decimal(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [("720", 720.0), ("72 cm", 720.0), ("72cm", 720.0), ("1 in", 25.4), ("0.5 m", 500.0), ("wide", None), (None, None)],
)
def test_parse_dimension_value(text, expected):
    assert parse_dimension_value(text) == expected


def test_to_millimeters_unknown_unit_is_mm():
    assert to_millimeters(12, "furlong") == 12.0


@pytest.mark.parametrize(
    "text, expected",
    [("2", 2), ("2.0", 2), ("2 pcs", 2), ("-1", -1), ("2.5", None), ("two", None), (None, None)],
)
def test_parse_count(text, expected):
    assert parse_count(text) == expected
