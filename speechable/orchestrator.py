"""Batched concurrent synthesis of chunks with cooperative cancellation."""

import asyncio
import logging
from typing import Callable

from speechable.constants import DEFAULT_VOICE, PARALLEL_CHUNKS
from speechable.models import Cancelled, Chunk, ChunkResult
from speechable.timing import estimate_timings
from speechable.tts import EngineHandle, ProgressCallback, SynthesisError
from speechable.wav import WavFormatError, wav_duration_ms

logger = logging.getLogger(__name__)


class CancellationToken:
    """Single shared flag polled by every stage at loop and batch boundaries."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class SynthesisOrchestrator:
    """Drive chunk synthesis through an engine handle.

    Chunks are synthesized in batches of batch_width running concurrently.
    Each batch is sorted by chunk index before being folded into the running
    totals, so output order never depends on completion order.
    """

    def __init__(
        self,
        handle: EngineHandle,
        voice_id: str = DEFAULT_VOICE,
        batch_width: int = PARALLEL_CHUNKS,
        on_progress: Callable[[int, int], None] | None = None,
    ):
        if batch_width < 1:
            raise ValueError(f"batch_width must be at least 1, got {batch_width}")
        self.handle = handle
        self.voice_id = voice_id
        self.batch_width = batch_width
        self.on_progress = on_progress
        self.total_duration_ms = 0.0
        self.total_words = 0

    async def prepare(
        self,
        on_download: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> Cancelled | None:
        """Load the engine and download the voice if not already done."""
        if token and token.cancelled:
            return Cancelled("loading")
        await self.handle.ensure_voice(self.voice_id, on_download)
        if token and token.cancelled:
            return Cancelled("loading")
        return None

    async def _synthesize_one(self, chunk: Chunk, token: CancellationToken | None) -> ChunkResult | None:
        if token and token.cancelled:
            return None
        try:
            audio = await self.handle.synthesize(chunk.text, self.voice_id)
        except SynthesisError as e:
            e.chunk_index = chunk.index
            raise
        except Exception as e:
            raise SynthesisError(f"Chunk {chunk.index} failed: {e}", chunk.index) from e

        try:
            duration_ms = wav_duration_ms(audio)
        except WavFormatError as e:
            raise SynthesisError(f"Chunk {chunk.index} returned unreadable audio: {e}", chunk.index) from e
        if duration_ms <= 0:
            raise SynthesisError(f"Chunk {chunk.index} returned empty audio", chunk.index)

        timings = estimate_timings(chunk.text, duration_ms)
        return ChunkResult(
            chunk_index=chunk.index,
            audio=audio,
            duration_ms=duration_ms,
            word_count=len(timings),
            timings=timings,
        )

    async def synthesize(
        self,
        chunks: list[Chunk],
        token: CancellationToken | None = None,
    ) -> list[ChunkResult] | Cancelled:
        """Synthesize every chunk, returning results in chunk-index order.

        Raises SynthesisError for the lowest-index chunk that failed in the
        first failing batch; later batches are not started.
        """
        total = len(chunks)
        results: list[ChunkResult] = []
        self.total_duration_ms = 0.0
        self.total_words = 0

        for start in range(0, total, self.batch_width):
            if token and token.cancelled:
                return Cancelled("synthesis")

            batch = chunks[start:start + self.batch_width]
            outcomes = await asyncio.gather(
                *(self._synthesize_one(c, token) for c in batch),
                return_exceptions=True,
            )

            failures = [o for o in outcomes if isinstance(o, BaseException)]
            if failures:
                failures.sort(key=lambda e: getattr(e, "chunk_index", None) or 0)
                raise failures[0]

            if token and token.cancelled:
                return Cancelled("synthesis")

            for result in sorted(outcomes, key=lambda r: r.chunk_index):
                results.append(result)
                self.total_duration_ms += result.duration_ms
                self.total_words += result.word_count

            logger.info(
                "Synthesized %d/%d chunks (%.0f ms, %d words)",
                len(results), total, self.total_duration_ms, self.total_words,
            )
            if self.on_progress:
                self.on_progress(len(results), total)

        return results
