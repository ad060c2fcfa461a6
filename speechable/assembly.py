"""Concatenate per-chunk WAV payloads into one canonical WAV."""

import asyncio
import logging

from speechable.constants import ASSEMBLY_BATCH_SIZE, LARGE_ASSEMBLY_THRESHOLD
from speechable.models import AssembledAudio, Cancelled, ChunkResult, WordTiming
from speechable.orchestrator import CancellationToken
from speechable.timing import shift_timings
from speechable.wav import build_header, parse_wav, pcm_payload

logger = logging.getLogger(__name__)


def global_timings(results: list[ChunkResult]) -> list[WordTiming]:
    """Shift each chunk's local timings by the duration and word count before it."""
    timings = []
    offset_ms = 0.0
    word_offset = 0
    for result in results:
        timings.extend(shift_timings(result.timings, offset_ms, word_offset))
        offset_ms += result.duration_ms
        word_offset += len(result.timings)
    return timings


def _concat_direct(header: bytes, payloads: list[memoryview]) -> bytes:
    return header + b"".join(payloads)


async def _concat_batched(
    header: bytes,
    payloads: list[memoryview],
    token: CancellationToken | None,
) -> bytearray | None:
    """Copy payloads into one preallocated buffer, yielding between batches."""
    total = len(header) + sum(len(p) for p in payloads)
    out = bytearray(total)
    out[:len(header)] = header
    pos = len(header)

    for start in range(0, len(payloads), ASSEMBLY_BATCH_SIZE):
        if token and token.cancelled:
            return None
        for payload in payloads[start:start + ASSEMBLY_BATCH_SIZE]:
            out[pos:pos + len(payload)] = payload
            pos += len(payload)
        await asyncio.sleep(0)

    return out


async def assemble(
    results: list[ChunkResult],
    token: CancellationToken | None = None,
) -> AssembledAudio | Cancelled:
    """Join chunk audio in chunk-index order under a single 44-byte header.

    Each chunk is parsed by walking its RIFF sub-chunks, so producers that
    insert LIST or fact chunks before "data" are handled. The format of the
    last chunk is used for the output header. More than
    LARGE_ASSEMBLY_THRESHOLD chunks are copied in batches with a cooperative
    yield in between; both paths produce identical bytes.
    """
    if not results:
        raise ValueError("Nothing to assemble: no chunk results")
    if token and token.cancelled:
        return Cancelled("assembly")

    results = sorted(results, key=lambda r: r.chunk_index)
    infos = [parse_wav(r.audio) for r in results]
    payloads = [pcm_payload(r.audio, info) for r, info in zip(results, infos)]
    fmt = infos[-1]
    data_size = sum(len(p) for p in payloads)
    header = build_header(data_size, fmt.sample_rate, fmt.channels, fmt.bits_per_sample)

    if len(results) > LARGE_ASSEMBLY_THRESHOLD:
        logger.info("Assembling %d chunks in batches of %d", len(results), ASSEMBLY_BATCH_SIZE)
        wav = await _concat_batched(header, payloads, token)
        if wav is None:
            return Cancelled("assembly")
        wav = bytes(wav)
    else:
        wav = _concat_direct(header, payloads)

    return AssembledAudio(
        wav=wav,
        duration_ms=sum(r.duration_ms for r in results),
        timings=global_timings(results),
        sample_rate=fmt.sample_rate,
        channels=fmt.channels,
        bits_per_sample=fmt.bits_per_sample,
    )
