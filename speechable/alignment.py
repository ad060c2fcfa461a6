"""Optional ASR word alignment of assembled audio.

Alignment never aborts generation: if the aligner is disabled, cannot be
loaded, raises, or hears nothing, the syllable estimate is kept.
"""

import asyncio
import io
import logging
from typing import Callable, Protocol

from speechable.constants import (
    ALIGNMENT_YIELD_EVERY,
    ASR_CHUNK_LENGTH_S,
    ASR_DISABLED,
    ASR_STRIDE_S,
    MIN_ALIGNED_WORD_MS,
)
from speechable.models import AlignedTimings, AssembledAudio, Cancelled, EstimatedTimings, WordTiming
from speechable.orchestrator import CancellationToken

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class WordAligner(Protocol):
    async def load(self, model_id: str, on_progress: ProgressCallback | None = None) -> None:
        ...

    async def transcribe(
        self,
        audio: bytes,
        granularity: str = "word",
        chunk_length_s: int = ASR_CHUNK_LENGTH_S,
        stride_s: int = ASR_STRIDE_S,
    ) -> dict:
        """Return {"chunks": [{"text": str, "timestamp": [start_s, end_s]}, ...]}."""
        ...


class FasterWhisperAligner:
    """Word timestamps from a local faster-whisper model (CPU, int8)."""

    def __init__(self, device: str = "cpu", compute_type: str = "int8"):
        self.device = device
        self.compute_type = compute_type
        self.model = None

    async def load(self, model_id: str, on_progress: ProgressCallback | None = None) -> None:
        # Imported here so the package works without the asr extra
        from faster_whisper import WhisperModel

        self.model = await asyncio.to_thread(
            WhisperModel, model_id, device=self.device, compute_type=self.compute_type,
        )
        logger.info("Loaded Whisper model '%s' (device=%s)", model_id, self.device)
        if on_progress:
            on_progress(1, 1)

    def _transcribe_sync(self, audio: bytes, chunk_length_s: int) -> dict:
        segments, _ = self.model.transcribe(
            io.BytesIO(audio),
            word_timestamps=True,
            chunk_length=chunk_length_s,
        )
        chunks = []
        for segment in segments:
            for word in segment.words or []:
                chunks.append({"text": word.word, "timestamp": [word.start, word.end]})
        return {"chunks": chunks}

    async def transcribe(
        self,
        audio: bytes,
        granularity: str = "word",
        chunk_length_s: int = ASR_CHUNK_LENGTH_S,
        stride_s: int = ASR_STRIDE_S,
    ) -> dict:
        if self.model is None:
            raise RuntimeError("Whisper model not loaded")
        if granularity != "word":
            raise ValueError(f"Unsupported granularity: {granularity}")
        # faster-whisper handles window overlap itself; stride_s is accepted for interface parity
        return await asyncio.to_thread(self._transcribe_sync, audio, chunk_length_s)


class AlignerHandle:
    """Lazily created and loaded aligner for one model id."""

    def __init__(self, factory: Callable[[], WordAligner], model_id: str):
        self._factory = factory
        self.model_id = model_id
        self._aligner: WordAligner | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.model_id) and self.model_id != ASR_DISABLED

    async def aligner(self, on_progress: ProgressCallback | None = None) -> WordAligner:
        if self._aligner is None:
            aligner = self._factory()
            await aligner.load(self.model_id, on_progress)
            self._aligner = aligner
        return self._aligner


async def aligned_from_chunks(payload: dict, duration_ms: float) -> list[WordTiming]:
    """Convert ASR output into contiguous, non-overlapping word timings.

    Entries with empty text are skipped. A missing end falls back to the next
    word's start, or the end of the audio for the last word.
    """
    entries = []
    for item in payload.get("chunks") or []:
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        stamp = list(item.get("timestamp") or [None, None]) + [None, None]
        entries.append((text, stamp[0], stamp[1]))

    timings = []
    prev_end = 0.0
    for i, (text, start_s, end_s) in enumerate(entries):
        start_ms = start_s * 1000 if start_s is not None else prev_end
        if end_s is not None:
            end_ms = end_s * 1000
        elif i + 1 < len(entries) and entries[i + 1][1] is not None:
            end_ms = entries[i + 1][1] * 1000
        else:
            end_ms = duration_ms

        start_ms = max(start_ms, prev_end)
        if end_ms - start_ms < MIN_ALIGNED_WORD_MS:
            end_ms = start_ms + MIN_ALIGNED_WORD_MS
        timings.append(WordTiming(word=text, index=len(timings), start_ms=start_ms, end_ms=end_ms))
        prev_end = end_ms

        if (i + 1) % ALIGNMENT_YIELD_EVERY == 0:
            await asyncio.sleep(0)

    return timings


async def reconcile(
    audio: AssembledAudio,
    estimated: EstimatedTimings,
    aligner: AlignerHandle | None = None,
    token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> EstimatedTimings | AlignedTimings | Cancelled:
    """Pick the final timings for assembled audio.

    ASR-aligned timings replace the estimate wholesale when alignment yields
    at least one word. A different word count is logged but accepted.
    """
    if token and token.cancelled:
        return Cancelled("alignment")
    if aligner is None or not aligner.enabled:
        return estimated

    try:
        model = await aligner.aligner(on_progress)
        if token and token.cancelled:
            return Cancelled("alignment")
        payload = await model.transcribe(
            audio.wav,
            granularity="word",
            chunk_length_s=ASR_CHUNK_LENGTH_S,
            stride_s=ASR_STRIDE_S,
        )
        words = await aligned_from_chunks(payload, audio.duration_ms)
    except Exception as e:
        logger.warning("Word alignment failed, using estimated timings: %s", e)
        return estimated

    if token and token.cancelled:
        return Cancelled("alignment")
    if not words:
        logger.warning("Word alignment returned no words, using estimated timings")
        return estimated
    if len(words) != len(estimated.words):
        logger.info(
            "Aligned word count %d differs from estimated %d; using aligned timings",
            len(words), len(estimated.words),
        )
    return AlignedTimings(words)
