"""Word timing estimation from syllable counts and punctuation pauses."""

import bisect
import math
import re

from speechable.constants import (
    LARGE_TEXT_THRESHOLD,
    PAUSE_BUDGET_RATIO,
    PAUSE_CLAUSE_MS,
    PAUSE_DASH_MS,
    PAUSE_SENTENCE_MS,
    PAUSE_WORD_MS,
    PROCESSING_MINUTES_PER_1000_CHARS,
    SPEECH_WORDS_PER_MINUTE,
)
from speechable.models import WordTiming

_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")
_CONSONANT_LE_RE = re.compile(r"[^aeiouy]le$")
_CLOSING_RE = re.compile(r"[\"')\]}’”]+$")

# Generation is slower the more (and smaller) chunks a preset produces
QUALITY_TIME_MULTIPLIER = {"low": 0.8, "medium": 1.2, "high": 2.0}


def count_syllables(word: str) -> int:
    """Estimate syllables by counting vowel groups.

    A silent trailing "e" is dropped when there is more than one group, and
    a trailing consonant + "le" ("table", "little") counts as its own.
    """
    letters = "".join(ch for ch in word.lower() if ch.isalpha())
    if not letters:
        return 1
    count = len(_VOWEL_GROUP_RE.findall(letters))
    if letters.endswith("e") and count > 1:
        count -= 1
    if _CONSONANT_LE_RE.search(letters):
        count += 1
    return max(1, count)


def pause_after(word: str) -> float:
    """Pause in ms that follows a word, by its trailing punctuation."""
    stripped = _CLOSING_RE.sub("", word)
    if not stripped:
        return PAUSE_WORD_MS
    last = stripped[-1]
    if last in ".!?":
        return PAUSE_SENTENCE_MS
    if last in ",;:":
        return PAUSE_CLAUSE_MS
    if last in "-–—":
        return PAUSE_DASH_MS
    return PAUSE_WORD_MS


def estimate_timings(
    text: str,
    duration_ms: float,
    start_ms: float = 0.0,
    first_index: int = 0,
) -> list[WordTiming]:
    """Lay out [start, end) intervals for each word of a chunk.

    The duration left after pauses is shared between words in proportion to
    their syllable counts. Intervals are monotonic, non-overlapping and end
    no later than start_ms + duration_ms.
    """
    words = text.split()
    if not words:
        return []

    duration_ms = max(0.0, duration_ms)
    syllables = [count_syllables(w) for w in words]
    pauses = [pause_after(w) for w in words]

    total_pause = sum(pauses)
    budget = duration_ms * PAUSE_BUDGET_RATIO
    if total_pause > budget:
        # Short audio for many words: shrink pauses so every word keeps a length
        scale = budget / total_pause
        pauses = [p * scale for p in pauses]
        total_pause = budget

    speaking_ms = max(0.0, duration_ms - total_pause)
    total_syllables = sum(syllables)

    timings = []
    cursor = start_ms
    for i, (word, count, pause) in enumerate(zip(words, syllables, pauses)):
        word_ms = count / total_syllables * speaking_ms
        timings.append(WordTiming(word=word, index=first_index + i, start_ms=cursor, end_ms=cursor + word_ms))
        cursor += word_ms + pause
    return timings


def shift_timings(timings: list[WordTiming], offset_ms: float, index_offset: int) -> list[WordTiming]:
    return [t.shifted(offset_ms, index_offset) for t in timings]


def word_at(timings: list[WordTiming], position_ms: float) -> WordTiming | None:
    """Return the word being spoken at position_ms, or None between words."""
    starts = [t.start_ms for t in timings]
    i = bisect.bisect_right(starts, position_ms) - 1
    if i < 0:
        return None
    timing = timings[i]
    return timing if position_ms < timing.end_ms else None


def estimate_generation_seconds(text: str, quality: str) -> int:
    """Rough wall-clock estimate: speech length plus per-character processing."""
    if not text.strip():
        return 0
    speech_minutes = len(text.split()) / SPEECH_WORDS_PER_MINUTE
    multiplier = QUALITY_TIME_MULTIPLIER.get(quality, QUALITY_TIME_MULTIPLIER["medium"])
    processing_minutes = len(text) / 1000 * PROCESSING_MINUTES_PER_1000_CHARS * multiplier
    return math.ceil((speech_minutes + processing_minutes) * 60)


def format_estimate(seconds: int) -> str:
    if seconds < 60:
        return f"~{seconds}s"
    return f"~{seconds // 60}m {seconds % 60}s"


def is_large_text(text: str) -> bool:
    return len(text.split()) > LARGE_TEXT_THRESHOLD
