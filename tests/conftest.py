"""Shared fixtures for speechable tests."""

import asyncio

import numpy as np
import pytest

from speechable.tts import EngineHandle
from speechable.wav import encode_pcm16

SAMPLE_RATE = 16000


def make_wav(duration_ms=100, sample_rate=SAMPLE_RATE, channels=1, freq=440.0):
    """Canonical 16-bit WAV holding a quiet sine tone."""
    n = int(sample_rate * duration_ms / 1000)
    t = np.arange(n) / sample_rate
    tone = 0.3 * np.sin(2 * np.pi * freq * t)
    frames = np.repeat(tone[:, np.newaxis], channels, axis=1)
    return encode_pcm16(frames, sample_rate)


class FakeEngine:
    """In-memory synthesis engine.

    Audio length is ms_per_word per word. Later calls finish sooner, so
    chunks in one batch complete in reverse order.
    """

    def __init__(self, ms_per_word=200, fail_on=None):
        self.ms_per_word = ms_per_word
        self.fail_on = fail_on or []
        self.calls = []
        self.downloads = []

    async def download(self, voice_id, on_progress=None):
        self.downloads.append(voice_id)
        if on_progress:
            on_progress(50, 100)
            on_progress(100, 100)

    async def synthesize(self, text, voice_id):
        self.calls.append(text)
        await asyncio.sleep(max(0.0, 0.01 - 0.003 * len(self.calls)))
        if any(marker in text for marker in self.fail_on):
            raise RuntimeError(f"engine refused: {text[:20]}")
        return make_wav(self.ms_per_word * len(text.split()))


@pytest.fixture
def wav_factory():
    return make_wav


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def engine_handle(fake_engine):
    return EngineHandle(lambda: fake_engine)


@pytest.fixture
def sample_text():
    return (
        "Dr. Smith earns $1,200 in 2024. She arrived at 3:30 PM on Jan. 5th!\n\n"
        "Visit https://example.com for more 😀 details & updates."
    )
