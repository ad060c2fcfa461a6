"""Data models for speech generation."""

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Chunk:
    index: int
    text: str


@dataclass
class WordTiming:
    word: str
    index: int          # global, contiguous from 0
    start_ms: float
    end_ms: float

    def shifted(self, offset_ms: float, index_offset: int) -> "WordTiming":
        return replace(
            self,
            index=self.index + index_offset,
            start_ms=self.start_ms + offset_ms,
            end_ms=self.end_ms + offset_ms,
        )

    def to_dict(self) -> dict:
        """Serialized form stored next to the audio (milliseconds)."""
        return {
            "word": self.word,
            "index": self.index,
            "start": round(self.start_ms, 3),
            "end": round(self.end_ms, 3),
        }


@dataclass
class ChunkResult:
    chunk_index: int
    audio: bytes        # complete WAV file as returned by the engine
    duration_ms: float
    word_count: int
    timings: list[WordTiming] = field(default_factory=list)  # chunk-local


@dataclass
class AssembledAudio:
    wav: bytes
    duration_ms: float
    timings: list[WordTiming]
    sample_rate: int
    channels: int
    bits_per_sample: int = 16


@dataclass
class EstimatedTimings:
    """Syllable-weighted estimate laid out by the timing estimator."""
    words: list[WordTiming]
    source: str = "estimated"


@dataclass
class AlignedTimings:
    """Word timestamps reported by the ASR aligner, in its own index space."""
    words: list[WordTiming]
    source: str = "aligned"


@dataclass
class Completed:
    audio: bytes
    timings: EstimatedTimings | AlignedTimings
    duration_ms: float
    chunk_count: int
    normalized_text: str


@dataclass
class Cancelled:
    stage: str          # where the cancellation was observed
