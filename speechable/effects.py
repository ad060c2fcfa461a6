"""Duration-preserving audio effects: pitch shift and subtle room reverb.

Word timings index absolute milliseconds into the assembled audio, so every
effect returns exactly as many frames as it was given.
"""

import io

import numpy as np
from pydub import AudioSegment

from speechable.constants import (
    PITCH_LIMIT_SEMITONES,
    REVERB_DECAY,
    REVERB_DIRECT_LEVEL,
    REVERB_EARLY_LEVEL,
    REVERB_EARLY_MS,
    REVERB_MAX,
    REVERB_MAX_WET,
    REVERB_MIN_SECONDS,
    REVERB_NOISE_LEVEL,
    REVERB_SPAN_SECONDS,
    REVERB_STEREO_SPREAD,
)
from speechable.settings import EffectSettings
from speechable.wav import encode_pcm16


def decode_frames(wav: bytes) -> tuple[np.ndarray, int]:
    """Decode a WAV buffer to float frames shaped (n, channels) in [-1, 1]."""
    audio = AudioSegment.from_wav(io.BytesIO(wav))
    if audio.sample_width != 2:
        audio = audio.set_sample_width(2)
    samples = np.array(audio.get_array_of_samples(), dtype=np.float32) / 32768.0
    return samples.reshape((-1, audio.channels)), audio.frame_rate


def match_length(frames: np.ndarray, n: int) -> np.ndarray:
    """Truncate, or pad with silence, to exactly n frames."""
    if len(frames) == n:
        return frames
    if len(frames) > n:
        return frames[:n]
    pad = np.zeros((n - len(frames), frames.shape[1]), dtype=frames.dtype)
    return np.concatenate([frames, pad])


def _stretch(frames: np.ndarray, target: int) -> np.ndarray:
    """Linear interpolation of frames onto target evenly spaced positions."""
    source = len(frames)
    positions = np.arange(target) / target * source
    index = np.arange(source)
    return np.stack(
        [np.interp(positions, index, frames[:, ch]) for ch in range(frames.shape[1])],
        axis=1,
    ).astype(np.float32)


def pitch_shift(frames: np.ndarray, semitones: float) -> np.ndarray:
    """Shift pitch by resampling, then stretch back to the original length.

    The shift is clamped to +/-PITCH_LIMIT_SEMITONES.
    """
    n = len(frames)
    semitones = max(-PITCH_LIMIT_SEMITONES, min(PITCH_LIMIT_SEMITONES, semitones))
    if semitones == 0 or n == 0:
        return frames

    ratio = 2 ** (semitones / 12)
    resampled_len = max(1, round(n / ratio))
    # Playing back at `ratio` reads the source `ratio` frames per output frame
    positions = np.arange(resampled_len) * ratio
    index = np.arange(n)
    resampled = np.stack(
        [np.interp(positions, index, frames[:, ch], right=0.0) for ch in range(frames.shape[1])],
        axis=1,
    )
    return _stretch(resampled, n)


def room_impulse(sample_rate: int, seconds: float, rng: np.random.Generator) -> np.ndarray:
    """Stereo room impulse shaped (length, 2), normalised to unit energy."""
    length = max(1, int(sample_rate * seconds))
    i = np.arange(length)
    decay = np.exp(-REVERB_DECAY * i / length)
    early = np.where(i < sample_rate * REVERB_EARLY_MS / 1000, REVERB_EARLY_LEVEL, 0.0)

    channels = []
    for spread in REVERB_STEREO_SPREAD:
        noise = rng.uniform(-1.0, 1.0, length) * decay * REVERB_NOISE_LEVEL
        channel = (early + noise) * spread
        channel[0] = REVERB_DIRECT_LEVEL
        channels.append(channel)

    impulse = np.stack(channels, axis=1)
    energy = np.sqrt(np.sum(impulse ** 2))
    return impulse / energy if energy else impulse


def _convolve(signal: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """FFT convolution truncated to len(signal)."""
    n = len(signal)
    size = 1 << int(np.ceil(np.log2(n + len(kernel) - 1)))
    out = np.fft.irfft(np.fft.rfft(signal, size) * np.fft.rfft(kernel, size), size)
    return out[:n]


def apply_reverb(
    frames: np.ndarray,
    sample_rate: int,
    amount: float,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Mix a convolved room ambience under the dry signal.

    amount is 0..100; the impulse lengthens from 0.1 s to 0.8 s and the wet
    share rises to at most 25%. No tail is rendered past the input length.
    """
    amount = max(0, min(REVERB_MAX, amount))
    if amount == 0 or len(frames) == 0:
        return frames

    rng = rng or np.random.default_rng()
    seconds = REVERB_MIN_SECONDS + amount / REVERB_MAX * REVERB_SPAN_SECONDS
    wet_mix = amount / REVERB_MAX * REVERB_MAX_WET
    impulse = room_impulse(sample_rate, seconds, rng)

    channels = frames.shape[1]
    wet = np.empty_like(frames, dtype=np.float64)
    for ch in range(channels):
        # Mono input hears both impulse channels summed down
        kernel = impulse[:, ch] if channels == 2 else impulse.mean(axis=1)
        wet[:, ch] = _convolve(frames[:, ch].astype(np.float64), kernel)

    return ((1 - wet_mix) * frames + wet_mix * wet).astype(np.float32)


def apply_effects(wav: bytes, settings: EffectSettings, seed: int | None = None) -> bytes:
    """Apply pitch shift then reverb to a WAV buffer.

    With both effects at zero the input is returned unchanged. Otherwise the
    result is a canonical 16-bit WAV with the same frame count as the input.
    """
    if settings.bypass:
        return wav

    frames, sample_rate = decode_frames(wav)
    n = len(frames)

    if settings.pitch_semitones:
        frames = pitch_shift(frames, settings.pitch_semitones)
    if settings.reverb > 0:
        frames = apply_reverb(frames, sample_rate, settings.reverb, np.random.default_rng(seed))

    return encode_pcm16(match_length(frames, n), sample_rate)
