"""Tests for audio assembly."""

import asyncio
import struct

import pytest

from speechable.assembly import assemble, global_timings
from speechable.constants import LARGE_ASSEMBLY_THRESHOLD, WAV_HEADER_SIZE
from speechable.models import Cancelled, ChunkResult, WordTiming
from speechable.orchestrator import CancellationToken
from speechable.timing import estimate_timings
from speechable.wav import parse_wav, pcm_payload

from conftest import make_wav


def _result(index, duration_ms=100, text="two words", wav=None, freq=440.0):
    wav = wav or make_wav(duration_ms, freq=freq)
    return ChunkResult(
        chunk_index=index,
        audio=wav,
        duration_ms=duration_ms,
        word_count=len(text.split()),
        timings=estimate_timings(text, duration_ms),
    )


def _with_fact_chunk(wav: bytes) -> bytes:
    fact = b"fact" + struct.pack("<I", 4) + b"\x10\x00\x00\x00"
    out = wav[:36] + fact + wav[36:]
    return out[:4] + struct.pack("<I", len(out) - 8) + out[8:]


def test_single_chunk_identity():
    result = _result(0)
    assembled = asyncio.run(assemble([result]))
    assert assembled.wav == result.audio
    assert bytes(pcm_payload(assembled.wav)) == bytes(pcm_payload(result.audio))


def test_payload_sum_and_header():
    results = [_result(i, duration_ms=50 + 10 * i, freq=200.0 + i) for i in range(5)]
    assembled = asyncio.run(assemble(results))
    payload_sum = sum(parse_wav(r.audio).data_size for r in results)
    assert len(assembled.wav) == WAV_HEADER_SIZE + payload_sum
    assert struct.unpack_from("<I", assembled.wav, 40)[0] == payload_sum
    assert struct.unpack_from("<I", assembled.wav, 4)[0] == len(assembled.wav) - 8
    assert assembled.duration_ms == pytest.approx(sum(r.duration_ms for r in results))


def test_payloads_in_chunk_order():
    a, b = _result(0, freq=300.0), _result(1, freq=900.0)
    assembled = asyncio.run(assemble([b, a]))
    expected = bytes(pcm_payload(a.audio)) + bytes(pcm_payload(b.audio))
    assert assembled.wav[WAV_HEADER_SIZE:] == expected


def test_extra_subchunks_stripped():
    plain = make_wav(80)
    assembled = asyncio.run(assemble([_result(0, 80, wav=_with_fact_chunk(plain))]))
    assert assembled.wav == plain


def test_batched_path_matches_direct():
    count = LARGE_ASSEMBLY_THRESHOLD + 7
    results = [_result(i, duration_ms=20, freq=100.0 + i) for i in range(count)]
    batched = asyncio.run(assemble(results))
    direct_first = asyncio.run(assemble(results[:LARGE_ASSEMBLY_THRESHOLD]))
    direct_rest = asyncio.run(assemble(results[LARGE_ASSEMBLY_THRESHOLD:]))
    assert batched.wav[WAV_HEADER_SIZE:] == (
        direct_first.wav[WAV_HEADER_SIZE:] + direct_rest.wav[WAV_HEADER_SIZE:]
    )
    assert isinstance(batched.wav, bytes)


def test_batched_path_cancellable():
    token = CancellationToken()
    results = [_result(i, duration_ms=10) for i in range(LARGE_ASSEMBLY_THRESHOLD + 1)]
    token.cancel()
    assert asyncio.run(assemble(results, token)) == Cancelled("assembly")


def test_global_timings_shifted():
    results = [_result(0, 1000, "alpha beta"), _result(1, 500, "gamma delta epsilon")]
    timings = global_timings(results)
    assert [t.index for t in timings] == [0, 1, 2, 3, 4]
    assert [t.word for t in timings] == ["alpha", "beta", "gamma", "delta", "epsilon"]
    assert timings[2].start_ms == pytest.approx(1000)
    assert timings[-1].end_ms <= 1500
    for a, b in zip(timings, timings[1:]):
        assert b.start_ms >= a.end_ms


def test_assembled_carries_global_timings():
    results = [_result(0, 100, "one two"), _result(1, 100, "three")]
    assembled = asyncio.run(assemble(results))
    assert [t.word for t in assembled.timings] == ["one", "two", "three"]
    assert isinstance(assembled.timings[0], WordTiming)


def test_empty_input_rejected():
    with pytest.raises(ValueError):
        asyncio.run(assemble([]))
