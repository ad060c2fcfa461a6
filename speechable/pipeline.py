"""End-to-end generation: normalize, chunk, synthesize, assemble, align, effects, save."""

import asyncio
import logging
from typing import Callable

from speechable.alignment import AlignerHandle, reconcile
from speechable.assembly import assemble
from speechable.chunker import chunk
from speechable.effects import apply_effects
from speechable.models import Cancelled, Completed, EstimatedTimings
from speechable.normalizer import normalize
from speechable.orchestrator import CancellationToken, SynthesisOrchestrator
from speechable.persistence import AudioStore, serialize_timings, to_data_url
from speechable.settings import GenerationSettings
from speechable.tts import EngineHandle

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, float | None], None]


class EmptyContentError(ValueError):
    """Raised when there is no text to speak."""


def _cancelled(stage: str, on_status: StatusCallback | None) -> Cancelled:
    logger.info("Generation cancelled during %s", stage)
    if on_status:
        on_status("Cancelled", None)
    return Cancelled(stage)


async def generate(
    raw_text: str,
    settings: GenerationSettings,
    engine: EngineHandle,
    *,
    aligner: AlignerHandle | None = None,
    store: AudioStore | None = None,
    post_id=None,
    token: CancellationToken | None = None,
    on_status: StatusCallback | None = None,
) -> Completed | Cancelled:
    """Turn raw text into narrated audio with word timings.

    Status is reported through on_status(message, percent). A cancelled run
    reports "Cancelled" and returns Cancelled without saving anything.
    Synthesis failures propagate as SynthesisError.
    """
    if not raw_text or not raw_text.strip():
        raise EmptyContentError("No content to convert to speech")
    if store is not None and post_id is None:
        raise ValueError("post_id is required when a store is given")

    token = token or CancellationToken()

    def status(message: str, percent: float | None) -> None:
        if on_status:
            on_status(message, percent)

    # Loading
    status("Loading TTS engine...", 5)

    def on_download(loaded: int, total: int) -> None:
        fraction = loaded / total if total else 1.0
        status(f"Downloading voice... {round(fraction * 100)}%", 5 + fraction * 10)

    orchestrator = SynthesisOrchestrator(
        engine,
        voice_id=settings.voice,
        on_progress=lambda done, total: status(
            f"Processing {done}/{total} chunks...", 15 + done / total * 70,
        ),
    )
    outcome = await orchestrator.prepare(on_download, token)
    if isinstance(outcome, Cancelled):
        return _cancelled(outcome.stage, on_status)

    # Text
    preset = settings.quality_preset()
    normalized = normalize(raw_text)
    chunks = chunk(normalized, preset.chunk_size)
    if not chunks:
        raise EmptyContentError("Content has nothing speakable after normalization")
    logger.info("Normalized %d chars into %d chunks", len(normalized), len(chunks))
    status(f"Processing 0/{len(chunks)} chunks...", 15)

    # Synthesis
    results = await orchestrator.synthesize(chunks, token)
    if isinstance(results, Cancelled):
        return _cancelled(results.stage, on_status)

    # Assembly
    status("Combining audio...", 88)
    assembled = await assemble(results, token)
    if isinstance(assembled, Cancelled):
        return _cancelled(assembled.stage, on_status)

    # Alignment
    if aligner is not None and aligner.enabled:
        status("Aligning words...", 90)
    timings = await reconcile(assembled, EstimatedTimings(assembled.timings), aligner, token)
    if isinstance(timings, Cancelled):
        return _cancelled(timings.stage, on_status)

    # Effects
    effects = settings.effect_settings()
    audio = assembled.wav
    if not effects.bypass:
        status("Applying effects...", 92)
        audio = await asyncio.to_thread(apply_effects, assembled.wav, effects)
    if token.cancelled:
        return _cancelled("effects", on_status)

    # Persistence
    if store is not None:
        status("Saving...", 95)
        store.save(post_id, to_data_url(audio), serialize_timings(timings.words))

    status("Done!", 100)
    return Completed(
        audio=audio,
        timings=timings,
        duration_ms=assembled.duration_ms,
        chunk_count=len(chunks),
        normalized_text=normalized,
    )
