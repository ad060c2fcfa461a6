"""Speech synthesis engines and the lazily initialised engine handle."""

import io
import logging
from typing import Callable, Protocol

import edge_tts
from pydub import AudioSegment

from speechable.constants import DEFAULT_VOICE, TTS_RATE

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Hardcoded English voice pool (avoids network call at startup)
VOICE_POOL = [
    "en-US-AriaNeural",
    "en-US-GuyNeural",
    "en-US-JennyNeural",
    "en-US-DavisNeural",
    "en-US-TonyNeural",
    "en-US-SaraNeural",
    "en-GB-SoniaNeural",
    "en-GB-RyanNeural",
    "en-GB-ThomasNeural",
    "en-AU-NatashaNeural",
    "en-AU-WilliamNeural",
    "en-CA-ClaraNeural",
    "en-CA-LiamNeural",
    "en-IN-NeerjaNeural",
    "en-IN-PrabhatNeural",
    "en-IE-EmilyNeural",
]


class SynthesisError(RuntimeError):
    """Raised when the engine fails to produce audio for a chunk."""

    def __init__(self, message: str, chunk_index: int | None = None):
        super().__init__(message)
        self.chunk_index = chunk_index


class SynthesisEngine(Protocol):
    async def download(self, voice_id: str, on_progress: ProgressCallback | None = None) -> None:
        ...

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        """Return a complete WAV file for text."""
        ...


class EdgeTTSEngine:
    """Synthesis through Microsoft Edge's online voices.

    edge-tts streams MP3; each clip is decoded with pydub and re-encoded as
    mono 16-bit WAV at the configured sample rate.
    """

    def __init__(self, sample_rate: int = 22050, rate: str = TTS_RATE):
        self.sample_rate = sample_rate
        self.rate = rate

    async def download(self, voice_id: str, on_progress: ProgressCallback | None = None) -> None:
        # Voices are hosted remotely; nothing to fetch up front
        if on_progress:
            on_progress(1, 1)

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        communicate = edge_tts.Communicate(text, voice_id, rate=self.rate)
        mp3 = bytearray()
        async for message in communicate.stream():
            if message["type"] == "audio":
                mp3.extend(message["data"])

        # Empty stream counts as failure
        if not mp3:
            raise SynthesisError(f"TTS produced no audio for: {text[:50]}...")

        segment = AudioSegment.from_file(io.BytesIO(bytes(mp3)), format="mp3")
        segment = segment.set_frame_rate(self.sample_rate).set_channels(1).set_sample_width(2)
        out = io.BytesIO()
        segment.export(out, format="wav")
        return out.getvalue()


class EngineHandle:
    """Owns one engine instance, created on first use.

    Each voice is downloaded at most once per handle, so repeated runs
    through the same handle skip the download step.
    """

    def __init__(self, factory: Callable[[], SynthesisEngine]):
        self._factory = factory
        self._engine: SynthesisEngine | None = None
        self._downloaded: set[str] = set()

    @property
    def loaded(self) -> bool:
        return self._engine is not None

    def engine(self) -> SynthesisEngine:
        if self._engine is None:
            logger.info("Initialising synthesis engine")
            self._engine = self._factory()
        return self._engine

    async def ensure_voice(self, voice_id: str = DEFAULT_VOICE, on_progress: ProgressCallback | None = None) -> None:
        engine = self.engine()
        if voice_id in self._downloaded:
            return
        await engine.download(voice_id, on_progress)
        self._downloaded.add(voice_id)

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        return await self.engine().synthesize(text, voice_id)


def filter_voices(pool: list[str], query: str | None = None) -> list[str]:
    if not query:
        return list(pool)
    query = query.lower()
    return [v for v in pool if query in v.lower()]
