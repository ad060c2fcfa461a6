"""Tests for word timing estimation."""

import pytest

from speechable.constants import PAUSE_CLAUSE_MS, PAUSE_DASH_MS, PAUSE_SENTENCE_MS, PAUSE_WORD_MS
from speechable.models import WordTiming
from speechable.timing import (
    count_syllables,
    estimate_generation_seconds,
    estimate_timings,
    format_estimate,
    is_large_text,
    pause_after,
    shift_timings,
    word_at,
)


@pytest.mark.parametrize("word, expected", [
    ("cat", 1),
    ("hello", 2),
    ("make", 1),
    ("table", 2),
    ("little", 2),
    ("beautiful", 3),
    ("rhythm", 1),
    ("42", 1),
    ("Doctor,", 2),
])
def test_count_syllables(word, expected):
    assert count_syllables(word) == expected


@pytest.mark.parametrize("word, expected", [
    ("end.", PAUSE_SENTENCE_MS),
    ("really?", PAUSE_SENTENCE_MS),
    ('said."', PAUSE_SENTENCE_MS),
    ("wait,", PAUSE_CLAUSE_MS),
    ("note:", PAUSE_CLAUSE_MS),
    ("well-", PAUSE_DASH_MS),
    ("word", PAUSE_WORD_MS),
])
def test_pause_after(word, expected):
    assert pause_after(word) == expected


def _assert_well_formed(timings, start_ms, duration_ms):
    for t in timings:
        assert t.end_ms > t.start_ms
    for a, b in zip(timings, timings[1:]):
        assert b.start_ms > a.start_ms
        assert b.start_ms >= a.end_ms
    assert timings[-1].end_ms <= start_ms + duration_ms + 1e-6


def test_estimate_timings_basic():
    text = "Doctor Smith earns one thousand two hundred dollars in twenty twenty-four."
    timings = estimate_timings(text, 4000)
    assert [t.word for t in timings] == text.split()
    assert [t.index for t in timings] == list(range(11))
    assert timings[0].start_ms == 0
    _assert_well_formed(timings, 0, 4000)


def test_estimate_timings_syllable_weighting():
    timings = estimate_timings("cat beautiful", 2000)
    first, second = timings
    assert (second.end_ms - second.start_ms) == pytest.approx(3 * (first.end_ms - first.start_ms))


def test_estimate_timings_offsets():
    timings = estimate_timings("one two three", 900, start_ms=1000, first_index=7)
    assert timings[0].start_ms == 1000
    assert [t.index for t in timings] == [7, 8, 9]
    _assert_well_formed(timings, 1000, 900)


def test_estimate_timings_short_audio_keeps_word_lengths():
    text = "a, b, c, d, e, f, g, h, i, j."
    timings = estimate_timings(text, 500)
    assert len(timings) == 10
    _assert_well_formed(timings, 0, 500)


def test_estimate_timings_empty():
    assert estimate_timings("   ", 1000) == []


def test_shift_timings():
    timings = [WordTiming("a", 0, 0, 100), WordTiming("b", 1, 150, 300)]
    shifted = shift_timings(timings, 1000, 5)
    assert [(t.index, t.start_ms, t.end_ms) for t in shifted] == [(5, 1000, 1100), (6, 1150, 1300)]
    assert timings[0].start_ms == 0


def test_word_at():
    timings = [WordTiming("a", 0, 0, 100), WordTiming("b", 1, 150, 300)]
    assert word_at(timings, 50).word == "a"
    assert word_at(timings, 100) is None
    assert word_at(timings, 150).word == "b"
    assert word_at(timings, 400) is None
    assert word_at([], 10) is None


def test_estimate_generation_seconds():
    text = " ".join(["word"] * 150)
    # one minute of speech plus 749 chars of processing
    medium = estimate_generation_seconds(text, "medium")
    high = estimate_generation_seconds(text, "high")
    assert 60 < medium < high
    assert estimate_generation_seconds("", "medium") == 0


def test_format_estimate():
    assert format_estimate(45) == "~45s"
    assert format_estimate(125) == "~2m 5s"


def test_is_large_text():
    assert not is_large_text("short text")
    assert is_large_text(" ".join(["w"] * 2001))
