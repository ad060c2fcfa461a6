"""Canonical PCM WAV reading and writing.

Synthesis engines may put optional sub-chunks (LIST, fact, ...) between
"fmt " and "data", so the data chunk is located by walking the RIFF chunk
list from byte 12 rather than assuming the canonical 44-byte layout.
"""

import struct
from dataclasses import dataclass

import numpy as np

from speechable.constants import MAX_WAV_SCAN_CHUNKS, WAV_HEADER_SIZE


class WavFormatError(ValueError):
    """Raised when a buffer is not a PCM WAV file we can read."""


@dataclass(frozen=True)
class WavInfo:
    sample_rate: int
    channels: int
    bits_per_sample: int
    data_offset: int
    data_size: int

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0

    @property
    def duration_ms(self) -> float:
        if not self.byte_rate:
            return 0.0
        return self.data_size / self.byte_rate * 1000


def parse_wav(buf: bytes) -> WavInfo:
    """Read the format fields and locate the data chunk of a WAV buffer."""
    if len(buf) < 12 or buf[0:4] != b"RIFF" or buf[8:12] != b"WAVE":
        raise WavFormatError("not a RIFF/WAVE buffer")

    fmt = None
    offset = 12
    for _ in range(MAX_WAV_SCAN_CHUNKS):
        if offset + 8 > len(buf):
            break
        chunk_id = buf[offset:offset + 4]
        (size,) = struct.unpack_from("<I", buf, offset + 4)
        body = offset + 8

        if chunk_id == b"fmt ":
            if size < 16 or body + 16 > len(buf):
                raise WavFormatError("truncated fmt chunk")
            _, channels, sample_rate, _, _, bits = struct.unpack_from("<HHIIHH", buf, body)
            fmt = (sample_rate, channels, bits)
        elif chunk_id == b"data":
            if fmt is None:
                raise WavFormatError("data chunk before fmt chunk")
            sample_rate, channels, bits = fmt
            if not sample_rate or not channels or not bits:
                raise WavFormatError("fmt chunk has zero sample rate, channels or bit depth")
            # Streaming writers leave the size at 0 or 0xFFFFFFFF; trust the buffer
            data_size = min(size, len(buf) - body) if size else len(buf) - body
            return WavInfo(sample_rate, channels, bits, body, data_size)

        offset = body + size + (size & 1)

    raise WavFormatError(f"no data chunk within the first {MAX_WAV_SCAN_CHUNKS} chunks")


def wav_duration_ms(buf: bytes) -> float:
    return parse_wav(buf).duration_ms


def pcm_payload(buf: bytes, info: WavInfo | None = None) -> memoryview:
    """Zero-copy view of the data chunk's sample bytes."""
    info = info or parse_wav(buf)
    return memoryview(buf)[info.data_offset:info.data_offset + info.data_size]


def build_header(data_size: int, sample_rate: int, channels: int, bits_per_sample: int = 16) -> bytes:
    """Canonical 44-byte PCM header for a data payload of data_size bytes."""
    block_align = channels * bits_per_sample // 8
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        WAV_HEADER_SIZE - 8 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )


def encode_pcm16(frames: np.ndarray, sample_rate: int) -> bytes:
    """Encode float frames shaped (n, channels) in [-1, 1] as a 16-bit WAV.

    Samples are clamped first; negatives scale by 0x8000 and positives by
    0x7FFF so both ends of the range map onto the int16 limits.
    """
    if frames.ndim == 1:
        frames = frames[:, np.newaxis]
    clipped = np.clip(frames, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 0x8000, clipped * 0x7FFF)
    data = scaled.astype("<i2").tobytes()
    return build_header(len(data), sample_rate, frames.shape[1]) + data

