"""Spell out numbers, years, times, ordinals and money as English words."""

import re

_ONES = [
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
]
_TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]
_SCALES = ["", "thousand", "million", "billion", "trillion"]

_IRREGULAR_ORDINALS = {
    "one": "first",
    "two": "second",
    "three": "third",
    "five": "fifth",
    "eight": "eighth",
    "nine": "ninth",
    "twelve": "twelfth",
}

# symbol -> (singular, plural, minor singular, minor plural)
CURRENCIES = {
    "$": ("dollar", "dollars", "cent", "cents"),
    "€": ("euro", "euros", "cent", "cents"),
    "£": ("pound", "pounds", "penny", "pence"),
}

_LAST_WORD_RE = re.compile(r"^(.*?)([a-z]+)$")


def _two_digits(n: int) -> str:
    if n < 20:
        return _ONES[n]
    tens, ones = divmod(n, 10)
    if ones == 0:
        return _TENS[tens]
    return f"{_TENS[tens]}-{_ONES[ones]}"


def _three_digits(n: int) -> str:
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(f"{_ONES[hundreds]} hundred")
    if rest:
        parts.append(_two_digits(rest))
    return " ".join(parts)


def digits_to_words(digits: str) -> str:
    """Read a digit string one digit at a time: "042" -> "zero four two"."""
    return " ".join(_ONES[int(d)] for d in digits if d.isdigit())


def number_to_words(n: int) -> str:
    """Convert an integer to words using 3-digit groups and scale words.

    1234 -> "one thousand two hundred thirty-four". Magnitudes past the
    trillions are read digit by digit.
    """
    if n < 0:
        return "negative " + number_to_words(-n)
    if n == 0:
        return "zero"
    if n >= 1000 ** len(_SCALES):
        return digits_to_words(str(n))

    groups = []
    scale = 0
    while n:
        n, group = divmod(n, 1000)
        if group:
            words = _three_digits(group)
            if _SCALES[scale]:
                words += " " + _SCALES[scale]
            groups.append(words)
        scale += 1
    return " ".join(reversed(groups))


def decimal_to_words(text: str) -> str:
    """Convert a numeric literal ("-1,234.05") to words.

    Grouping commas are ignored; digits after the point are read one by one.
    """
    negative = text.startswith("-")
    whole, _, fraction = text.lstrip("-").replace(",", "").partition(".")
    words = number_to_words(int(whole or "0"))
    if fraction:
        words += " point " + digits_to_words(fraction)
    return "negative " + words if negative else words


def ordinal_to_words(n: int) -> str:
    """21 -> "twenty-first", 100 -> "one hundredth"."""
    head, last = _LAST_WORD_RE.match(number_to_words(n)).groups()
    if last in _IRREGULAR_ORDINALS:
        last = _IRREGULAR_ORDINALS[last]
    elif last.endswith("y"):
        last = last[:-1] + "ieth"
    else:
        last += "th"
    return head + last


def pluralize_number_words(words: str) -> str:
    """"nineteen ninety" -> "nineteen nineties" (decades)."""
    head, last = _LAST_WORD_RE.match(words).groups()
    if last.endswith("y"):
        return head + last[:-1] + "ies"
    return head + last + "s"


def year_to_words(year: int) -> str:
    """Read a four-digit year by century and remainder.

    2024 -> "twenty twenty-four", 1900 -> "nineteen hundred",
    1905 -> "nineteen oh five", 2005 -> "two thousand five".
    """
    century, remainder = divmod(year, 100)
    if 2000 <= year < 2010 or century % 10 == 0 and remainder == 0:
        return number_to_words(year)
    if remainder == 0:
        return f"{_two_digits(century)} hundred"
    if remainder < 10:
        return f"{_two_digits(century)} oh {_ONES[remainder]}"
    return f"{_two_digits(century)} {_two_digits(remainder)}"


def time_to_words(hour: int, minute: int, meridiem: str | None = None) -> str:
    """3:30 PM -> "three thirty PM", 3:05 -> "three oh five"."""
    words = number_to_words(hour)
    if minute == 0:
        if not meridiem:
            words += " o'clock"
    elif minute < 10:
        words += " oh " + _ONES[minute]
    else:
        words += " " + _two_digits(minute)
    if meridiem:
        words += " " + meridiem.upper()
    return words


def currency_to_words(
    symbol: str,
    amount: str,
    fraction: str | None = None,
    scale: str | None = None,
) -> str:
    """Spell a currency amount.

    The unit is singular only when the amount is exactly one:
    ("$", "1") -> "one dollar", ("$", "1,200") -> "one thousand two hundred
    dollars", ("$", "2", "5") -> "two dollars and fifty cents",
    ("$", "5", None, "million") -> "five million dollars".
    """
    singular, plural, minor_singular, minor_plural = CURRENCIES[symbol]
    whole = int(amount.replace(",", ""))

    if scale:
        literal = amount + ("." + fraction if fraction else "")
        return f"{decimal_to_words(literal)} {scale.lower()} {plural}"

    cents = int(fraction.ljust(2, "0")[:2]) if fraction else 0
    parts = []
    if whole or not cents:
        parts.append(f"{number_to_words(whole)} {singular if whole == 1 else plural}")
    if cents:
        parts.append(f"{number_to_words(cents)} {minor_singular if cents == 1 else minor_plural}")
    return " and ".join(parts)
