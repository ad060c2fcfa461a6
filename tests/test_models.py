"""Tests for constants and models."""

import dataclasses

import pytest

from speechable import constants
from speechable.models import AlignedTimings, Cancelled, Chunk, EstimatedTimings, WordTiming


def test_chunk_is_frozen():
    c = Chunk(index=0, text="Hello.")
    with pytest.raises(dataclasses.FrozenInstanceError):
        c.text = "changed"


def test_word_timing_to_dict_rounds():
    t = WordTiming("hi", 3, 10.1234, 20.9876)
    assert t.to_dict() == {"word": "hi", "index": 3, "start": 10.123, "end": 20.988}


def test_word_timing_shifted_is_a_copy():
    t = WordTiming("hi", 0, 0.0, 10.0)
    s = t.shifted(100.0, 4)
    assert (s.index, s.start_ms, s.end_ms) == (4, 100.0, 110.0)
    assert (t.index, t.start_ms) == (0, 0.0)


def test_timing_sources_tagged():
    assert EstimatedTimings([]).source == "estimated"
    assert AlignedTimings([]).source == "aligned"


def test_cancelled_equality():
    assert Cancelled("synthesis") == Cancelled("synthesis")
    assert Cancelled("synthesis") != Cancelled("assembly")


def test_constants_exist():
    """All module-level constants are defined."""
    expected = [
        "MIN_CHUNK_LENGTH",
        "MAX_CHUNK_LENGTH",
        "DEFAULT_CHUNK_SIZE",
        "PARALLEL_CHUNKS",
        "LARGE_ASSEMBLY_THRESHOLD",
        "ASSEMBLY_BATCH_SIZE",
        "PAUSE_SENTENCE_MS",
        "PAUSE_CLAUSE_MS",
        "PAUSE_DASH_MS",
        "PAUSE_WORD_MS",
        "PITCH_LIMIT_SEMITONES",
        "REVERB_MAX_WET",
        "OUTPUT_DIR",
        "VERSION",
    ]
    for name in expected:
        assert hasattr(constants, name), f"Missing constant: {name}"


def test_constant_values():
    assert (constants.MIN_CHUNK_LENGTH, constants.MAX_CHUNK_LENGTH) == (4, 1500)
    assert constants.PARALLEL_CHUNKS == 3
    assert constants.PAUSE_SENTENCE_MS > constants.PAUSE_CLAUSE_MS > constants.PAUSE_DASH_MS > constants.PAUSE_WORD_MS
    assert constants.REVERB_MAX_WET <= 0.25
