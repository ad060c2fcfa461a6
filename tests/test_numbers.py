"""Tests for number spelling."""

import pytest

from speechable.numbers import (
    currency_to_words,
    decimal_to_words,
    digits_to_words,
    number_to_words,
    ordinal_to_words,
    pluralize_number_words,
    time_to_words,
    year_to_words,
)


@pytest.mark.parametrize("n, expected", [
    (0, "zero"),
    (7, "seven"),
    (13, "thirteen"),
    (40, "forty"),
    (42, "forty-two"),
    (100, "one hundred"),
    (101, "one hundred one"),
    (1234, "one thousand two hundred thirty-four"),
    (20000, "twenty thousand"),
    (1000001, "one million one"),
    (999999, "nine hundred ninety-nine thousand nine hundred ninety-nine"),
])
def test_number_to_words(n, expected):
    assert number_to_words(n) == expected


def test_number_to_words_negative():
    assert number_to_words(-5) == "negative five"


def _magnitude(words: str) -> str:
    """Decode just the magnitude class from spelled-out words."""
    if "million" in words:
        return "millions"
    if "thousand" in words:
        return "thousands"
    return "units"


@pytest.mark.parametrize("n", [0, 9, 99, 999, 1000, 4321, 99999, 999999, 1000000, 7654321])
def test_magnitude_class_recoverable(n):
    expected = "millions" if n >= 1_000_000 else "thousands" if n >= 1000 else "units"
    assert _magnitude(number_to_words(n)) == expected


def test_beyond_trillions_reads_digits():
    assert number_to_words(10 ** 16) == "one " + " ".join(["zero"] * 16)


def test_decimal_to_words():
    assert decimal_to_words("3.14") == "three point one four"
    assert decimal_to_words("1,234") == "one thousand two hundred thirty-four"
    assert decimal_to_words("-0.5") == "negative zero point five"


def test_digits_to_words():
    assert digits_to_words("042") == "zero four two"


@pytest.mark.parametrize("n, expected", [
    (1, "first"),
    (2, "second"),
    (3, "third"),
    (5, "fifth"),
    (12, "twelfth"),
    (20, "twentieth"),
    (21, "twenty-first"),
    (100, "one hundredth"),
])
def test_ordinal_to_words(n, expected):
    assert ordinal_to_words(n) == expected


def test_pluralize_number_words():
    assert pluralize_number_words("nineteen ninety") == "nineteen nineties"
    assert pluralize_number_words("two thousand") == "two thousands"


@pytest.mark.parametrize("year, expected", [
    (2024, "twenty twenty-four"),
    (1999, "nineteen ninety-nine"),
    (1900, "nineteen hundred"),
    (1905, "nineteen oh five"),
    (2000, "two thousand"),
    (2005, "two thousand five"),
    (2010, "twenty ten"),
])
def test_year_to_words(year, expected):
    assert year_to_words(year) == expected


def test_time_to_words():
    assert time_to_words(3, 30, "PM") == "three thirty PM"
    assert time_to_words(3, 5) == "three oh five"
    assert time_to_words(7, 0) == "seven o'clock"
    assert time_to_words(7, 0, "am") == "seven AM"


def test_currency_to_words():
    assert currency_to_words("$", "1") == "one dollar"
    assert currency_to_words("$", "1,200") == "one thousand two hundred dollars"
    assert currency_to_words("$", "2", "5") == "two dollars and fifty cents"
    assert currency_to_words("$", "0", "01") == "one cent"
    assert currency_to_words("£", "3", "01") == "three pounds and one penny"
    assert currency_to_words("€", "5", None, "million") == "five million euros"
