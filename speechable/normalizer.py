"""Rewrite raw text into prose a speech synthesizer can pronounce."""

import html
import re

from speechable.numbers import (
    currency_to_words,
    decimal_to_words,
    number_to_words,
    ordinal_to_words,
    pluralize_number_words,
    time_to_words,
    year_to_words,
)

# Expanded wherever they appear as whole tokens (case-insensitive)
ABBREVIATIONS = {
    "Mr.": "Mister",
    "Mrs.": "Missus",
    "Ms.": "Miss",
    "Dr.": "Doctor",
    "Prof.": "Professor",
    "Sr.": "Senior",
    "Jr.": "Junior",
    "Rev.": "Reverend",
    "Gen.": "General",
    "Capt.": "Captain",
    "Sgt.": "Sergeant",
    "St.": "Saint",
    "Mt.": "Mount",
    "vs.": "versus",
    "etc.": "etcetera",
    "e.g.": "for example",
    "i.e.": "that is",
    "approx.": "approximately",
    "Inc.": "Incorporated",
    "Ltd.": "Limited",
    "Corp.": "Corporation",
    "Co.": "Company",
    "Ave.": "Avenue",
    "Blvd.": "Boulevard",
    "Rd.": "Road",
    "Jan.": "January",
    "Feb.": "February",
    "Mar.": "March",
    "Apr.": "April",
    "Jun.": "June",
    "Jul.": "July",
    "Aug.": "August",
    "Sep.": "September",
    "Sept.": "September",
    "Oct.": "October",
    "Nov.": "November",
    "Dec.": "December",
}

# Expanded only when a number follows ("No. 5")
NUMBERED_ABBREVIATIONS = {
    "no": "Number",
    "nos": "Numbers",
    "vol": "Volume",
    "ch": "Chapter",
    "fig": "Figure",
    "pp": "pages",
    "pg": "page",
}

# Expanded only directly after a number ("5 km")
UNITS = {
    "km": "kilometers",
    "kg": "kilograms",
    "mg": "milligrams",
    "cm": "centimeters",
    "mm": "millimeters",
    "ml": "milliliters",
    "lb": "pounds",
    "lbs": "pounds",
    "oz": "ounces",
    "ft": "feet",
    "mph": "miles per hour",
    "kph": "kilometers per hour",
    "hr": "hours",
    "hrs": "hours",
    "min": "minutes",
    "mins": "minutes",
    "sec": "seconds",
    "secs": "seconds",
}

SYMBOLS = {
    "&": " and ",
    "@": " at ",
    "+": " plus ",
    "=": " equals ",
    "%": " percent ",
}

_EMOJI_RE = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\U00002600-\U000026FF"
    "\U00002700-\U000027BF"
    "\U0001F900-\U0001F9FF"
    "\U0001FA70-\U0001FAFF"
    "\U0000FE0F\U0000200D"
    "]"
)
_WHITESPACE_RE = re.compile(r"\s+")
_MARKUP_TAG_RE = re.compile(r"</?[A-Za-z!][^>]*>")
_LINK_RE = re.compile(
    r"(?:https?://|www\.)\S+|[\w.+-]+@[\w-]+(?:\.[\w-]+)+",
    re.IGNORECASE,
)

_ABBREVIATION_RE = re.compile(
    r"(?<!\w)("
    + "|".join(re.escape(a) for a in sorted(ABBREVIATIONS, key=len, reverse=True))
    + r")",
    re.IGNORECASE,
)
_ABBREVIATION_LOOKUP = {k.lower(): v for k, v in ABBREVIATIONS.items()}
# May close a sentence; the period is kept when a capitalised word follows
_SENTENCE_FINAL_ABBREVIATIONS = {"etc.", "inc.", "ltd.", "corp."}
_NEXT_SENTENCE_RE = re.compile(r"\s*[A-Z]")
_NUMBERED_RE = re.compile(
    r"(?<![\w.])(" + "|".join(NUMBERED_ABBREVIATIONS) + r")\.\s?(?=-?\d)",
    re.IGNORECASE,
)
_UNIT_RE = re.compile(
    r"(?<=\d)\s?("
    + "|".join(sorted(UNITS, key=len, reverse=True))
    + r")(?:\.(?=\s+[a-z]))?(?!\w)",
    re.IGNORECASE,
)

_SLASH_RE = re.compile(r"(?<=\w)/(?=\w)")
_BRACKETS_RE = re.compile(r"[/\\()\[\]{}¯]")
_DOUBLE_QUOTES_RE = re.compile(r"[\"“”„«»]")
_NUMERIC_RANGE_RE = re.compile(r"(?<=\d)[–—](?=\d)")
_SPACED_DASH_RE = re.compile(r"\s*[—–]\s*")
_UNDERSCORE_RE = re.compile(r"(?<=\w)_(?=\w)")

_TIME_RE = re.compile(
    r"(?<![\d:])([01]?\d|2[0-4]):([0-5]\d)(?:\s?([AaPp])\.?\s?[Mm]\b)?(?![\d:])"
)
_CURRENCY_RE = re.compile(
    r"(?<![\w-])(-)?([$€£])\s?(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d{1,2}))?(?!\d)"
    r"(?:\s?(thousand|million|billion|trillion)\b)?",
    re.IGNORECASE,
)
_PERCENT_RE = re.compile(r"(?<![\w.])(-?\d+(?:\.\d+)?)\s?%")
_ORDINAL_RE = re.compile(r"(?<![\w.])(\d{1,3}(?:,\d{3})+|\d+)(st|nd|rd|th)\b", re.IGNORECASE)
_DECADE_RE = re.compile(r"(?<![\w.])'?(\d{0,2}\d0)s\b")
_YEAR_RANGE_RE = re.compile(
    r"(?<![\w.,-])(1[1-9]\d\d|20\d\d)-(1[1-9]\d\d|20\d\d)(?![\w%]|[.,]\d)"
)
_YEAR_RE = re.compile(r"(?<![\w.,#-])(1[1-9]\d\d|20\d\d)(?![\w%]|[.,]\d)")
_GROUPED_RE = re.compile(r"(?<![\w.#])(-?\d{1,3}(?:,\d{3})+(?:\.\d+)?)(?![\w]|,\d)")
_NUMBER_RE = re.compile(r"(?<![\w.#])(-?\d+(?:\.\d+)?)(?![\w]|\.\d)")

_DIMENSIONS_RE = re.compile(r"(?<![\w.])(\d+)\s?[xX×]\s?(\d+)(?!\w)")
_HASH_NUMBER_RE = re.compile(r"#(\d+)")
_HASHTAG_RE = re.compile(r"#(\w+)")
_DIGITS_RE = re.compile(r"\d+(?:\.\d+)?")

_TERMINAL_REPEAT_RE = re.compile(r"([.!?])[.!?]+")
_CLAUSE_REPEAT_RE = re.compile(r"([,;:])[,;:]+")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,!?;:])")
_CLAUSE_BEFORE_TERMINAL_RE = re.compile(r"[,;:]+([.!?])")
_LEADING_PUNCT_RE = re.compile(r"^[\s.,;:!?]+")
_MISSING_SPACE_RE = re.compile(r"([.!?,;:])(?=[A-Za-z])")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _outside_links(text: str, fn) -> str:
    """Apply fn to the text between URLs and email addresses only."""
    parts = []
    pos = 0
    for match in _LINK_RE.finditer(text):
        parts.append(fn(text[pos:match.start()]))
        parts.append(match.group(0))
        pos = match.end()
    parts.append(fn(text[pos:]))
    return "".join(parts)


def strip_emoji(text: str) -> str:
    return _EMOJI_RE.sub("", text)


def strip_markup(text: str) -> str:
    """Decode entities and drop HTML tags: "<b>Tom &amp; Jerry</b>" -> " Tom & Jerry "."""
    return _MARKUP_TAG_RE.sub(" ", html.unescape(text))


def _abbreviation(match: re.Match) -> str:
    key = match.group(1).lower()
    words = _ABBREVIATION_LOOKUP[key]
    rest = match.string[match.end():]
    if key in _SENTENCE_FINAL_ABBREVIATIONS and _NEXT_SENTENCE_RE.match(rest):
        return words + "."
    if rest[:1].isalnum():
        return words + " "
    return words


def expand_abbreviations(text: str) -> str:
    """Expand titles, Latin shorthand, months, numbered labels and units."""
    text = _ABBREVIATION_RE.sub(_abbreviation, text)
    text = _NUMBERED_RE.sub(lambda m: NUMBERED_ABBREVIATIONS[m.group(1).lower()] + " ", text)
    return _UNIT_RE.sub(lambda m: " " + UNITS[m.group(1).lower()], text)


def replace_structural_punctuation(text: str) -> str:
    text = _SLASH_RE.sub(" slash ", text)
    text = _BRACKETS_RE.sub(" ", text)
    text = _DOUBLE_QUOTES_RE.sub("", text)
    text = _NUMERIC_RANGE_RE.sub(" to ", text)
    text = _SPACED_DASH_RE.sub(", ", text)
    return _UNDERSCORE_RE.sub(" ", text)


def _time(match: re.Match) -> str:
    meridiem = match.group(3) + "M" if match.group(3) else None
    return time_to_words(int(match.group(1)), int(match.group(2)), meridiem)


def _currency(match: re.Match) -> str:
    sign, symbol, amount, fraction, scale = match.groups()
    words = currency_to_words(symbol, amount, fraction, scale)
    return "negative " + words if sign else words


def _decade(match: re.Match) -> str:
    digits = match.group(1)
    if len(digits) == 4:
        return pluralize_number_words(year_to_words(int(digits)))
    return pluralize_number_words(number_to_words(int(digits)))


def expand_numbers(text: str) -> str:
    """Spell out times, money, percentages, ordinals, years and plain numbers."""
    text = _TIME_RE.sub(_time, text)
    text = _CURRENCY_RE.sub(_currency, text)
    text = _PERCENT_RE.sub(lambda m: decimal_to_words(m.group(1)) + " percent", text)
    text = _ORDINAL_RE.sub(lambda m: ordinal_to_words(int(m.group(1).replace(",", ""))), text)
    text = _DECADE_RE.sub(_decade, text)
    text = _YEAR_RANGE_RE.sub(
        lambda m: f"{year_to_words(int(m.group(1)))} to {year_to_words(int(m.group(2)))}", text
    )
    text = _YEAR_RE.sub(lambda m: year_to_words(int(m.group(1))), text)
    text = _GROUPED_RE.sub(lambda m: decimal_to_words(m.group(1)), text)
    return _NUMBER_RE.sub(lambda m: decimal_to_words(m.group(1)), text)


def replace_symbols(text: str) -> str:
    text = _DIMENSIONS_RE.sub(
        lambda m: f"{number_to_words(int(m.group(1)))} by {number_to_words(int(m.group(2)))}",
        text,
    )
    text = _HASH_NUMBER_RE.sub(lambda m: "number " + number_to_words(int(m.group(1))), text)
    text = _HASHTAG_RE.sub(r"hashtag \1", text)
    text = text.replace("#", " ")
    for symbol, spoken in SYMBOLS.items():
        text = text.replace(symbol, spoken)
    # Digits glued to letters ("mp3") are the only ones left at this point
    return _DIGITS_RE.sub(lambda m: " " + decimal_to_words(m.group(0)) + " ", text)


def strip_links(text: str) -> str:
    return _LINK_RE.sub("", text)


def clean_punctuation(text: str) -> str:
    text = re.sub(r"[‘’‚‛`]", "'", text)
    text = text.replace("…", "...")
    text = _TERMINAL_REPEAT_RE.sub(r"\1", text)
    text = _CLAUSE_REPEAT_RE.sub(r"\1", text)
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _CLAUSE_BEFORE_TERMINAL_RE.sub(r"\1", text)
    text = _LEADING_PUNCT_RE.sub("", text)
    return _MISSING_SPACE_RE.sub(r"\1 ", text)


def _ensure_terminal(text: str) -> str:
    if not text or text[-1] in ".!?":
        return text
    if text[-1] in ",;:":
        return text[:-1] + "."
    return text + "."


def normalize(raw: str) -> str:
    """Normalize raw text for speech synthesis.

    Steps run in a fixed order; later steps rely on the earlier ones:
    markup, emoji, whitespace, abbreviations, structural punctuation, numbers,
    symbols, links, punctuation cleanup, final whitespace. Abbreviations,
    punctuation, numbers and symbols are rewritten only outside URLs and
    email addresses so the link step still recognises them.
    """
    if not raw or not raw.strip():
        return ""

    text = strip_markup(raw)
    text = strip_emoji(text)
    text = _collapse(text)
    text = _outside_links(text, expand_abbreviations)
    text = _outside_links(text, replace_structural_punctuation)
    text = _outside_links(text, expand_numbers)
    text = _outside_links(text, replace_symbols)
    text = strip_links(text)
    text = clean_punctuation(_collapse(text))
    return _ensure_terminal(_collapse(text))
