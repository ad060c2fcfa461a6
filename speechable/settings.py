"""Generation settings: quality and voice presets, sanitising, JSON storage."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

from speechable.constants import (
    ASR_DISABLED,
    DEFAULT_ASR_MODEL,
    DEFAULT_LANGUAGE,
    DEFAULT_QUALITY,
    DEFAULT_VOICE,
    DEFAULT_VOICE_PRESET,
    PITCH_LIMIT_SEMITONES,
    REVERB_MAX,
    SPEED_MAX,
    SPEED_MIN,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityPreset:
    name: str
    label: str
    chunk_size: int     # max characters per synthesized chunk
    sample_rate: int


@dataclass(frozen=True)
class VoicePreset:
    name: str
    pitch_semitones: int
    reverb: int


@dataclass(frozen=True)
class EffectSettings:
    pitch_semitones: float = 0.0
    reverb: float = 0.0

    @property
    def bypass(self) -> bool:
        return self.pitch_semitones == 0 and self.reverb == 0


# Smaller chunks give better sync at the cost of more engine calls
QUALITY_PRESETS = {
    "low": QualityPreset("low", "Low (Smaller file)", 1500, 16000),
    "medium": QualityPreset("medium", "Medium", 1000, 22050),
    "high": QualityPreset("high", "High (Best quality)", 600, 22050),
}

VOICE_PRESETS = {
    p.name: p
    for p in [
        VoicePreset("default", 0, 0),
        VoicePreset("warm", -1, 10),
        VoicePreset("bright", 1, 5),
        VoicePreset("radio", 0, 15),
        VoicePreset("narrator", -2, 20),
        VoicePreset("podcast", 0, 8),
        VoicePreset("deep", -4, 12),
        VoicePreset("soft", 2, 18),
        VoicePreset("room", 0, 35),
        VoicePreset("hall", 0, 50),
        VoicePreset("telephone", 2, 3),
        VoicePreset("vintage", -1, 25),
    ]
}
CUSTOM_PRESET = "custom"

# faster-whisper model name -> description
ASR_MODELS = {
    "tiny.en": "Tiny (English) - fastest, English only",
    "tiny": "Tiny (Multilingual) - fast, all languages",
    "small.en": "Small (English) - better accuracy, English only",
    "small": "Small (Multilingual) - better accuracy, all languages",
    ASR_DISABLED: "Disabled - use estimated timings",
}

_HF_WHISPER_PREFIX = "Xenova/whisper-"


def _clamp(value, low, high):
    return max(low, min(high, value))


def _number(value, default, cast=int):
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


def _asr_model(value) -> str:
    model = str(value or "")
    # Accept the hub ids stored by older settings files
    if model.startswith(_HF_WHISPER_PREFIX):
        model = model[len(_HF_WHISPER_PREFIX):]
    return model


@dataclass
class GenerationSettings:
    voice: str = DEFAULT_VOICE
    language: str = DEFAULT_LANGUAGE
    quality: str = DEFAULT_QUALITY
    voice_preset: str = DEFAULT_VOICE_PRESET
    pitch_semitones: int = 0
    reverb: int = 0
    speed: float = 1.0
    asr_model: str = DEFAULT_ASR_MODEL

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationSettings":
        """Build settings from untrusted input, falling back to defaults.

        Unknown quality, preset or ASR model values are replaced by the
        default with a warning. Pitch, reverb and speed are clamped. A named
        voice preset other than "custom" overrides pitch and reverb.
        """
        defaults = cls()

        quality = data.get("quality", defaults.quality)
        if quality not in QUALITY_PRESETS:
            logger.warning("Unknown quality %r, using %r", quality, defaults.quality)
            quality = defaults.quality

        preset = data.get("voice_preset", defaults.voice_preset)
        if preset not in VOICE_PRESETS and preset != CUSTOM_PRESET:
            logger.warning("Unknown voice preset %r, using %r", preset, defaults.voice_preset)
            preset = defaults.voice_preset

        asr_model = _asr_model(data.get("asr_model", defaults.asr_model))
        if asr_model not in ASR_MODELS:
            logger.warning("Unknown ASR model %r, using %r", asr_model, defaults.asr_model)
            asr_model = defaults.asr_model

        pitch = _clamp(_number(data.get("pitch_semitones"), 0), -PITCH_LIMIT_SEMITONES, PITCH_LIMIT_SEMITONES)
        reverb = _clamp(_number(data.get("reverb"), 0), 0, REVERB_MAX)
        if preset in VOICE_PRESETS:
            pitch = VOICE_PRESETS[preset].pitch_semitones
            reverb = VOICE_PRESETS[preset].reverb

        return cls(
            voice=str(data.get("voice") or defaults.voice),
            language=str(data.get("language") or defaults.language),
            quality=quality,
            voice_preset=preset,
            pitch_semitones=pitch,
            reverb=reverb,
            speed=_clamp(_number(data.get("speed"), 1.0, float), SPEED_MIN, SPEED_MAX),
            asr_model=asr_model,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def quality_preset(self) -> QualityPreset:
        return QUALITY_PRESETS[self.quality]

    def effect_settings(self) -> EffectSettings:
        return EffectSettings(pitch_semitones=self.pitch_semitones, reverb=self.reverb)

    def tts_rate(self) -> str:
        """Speed as an edge-tts relative rate: 1.25 -> "+25%"."""
        return f"{round((self.speed - 1) * 100):+d}%"

    @property
    def alignment_enabled(self) -> bool:
        return self.asr_model != ASR_DISABLED


def load_settings(path: str) -> GenerationSettings:
    """Read settings JSON. Missing file gives defaults; malformed JSON too, with a warning."""
    if not os.path.exists(path):
        return GenerationSettings()
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Malformed settings file: %s, using defaults", path)
        return GenerationSettings()
    if not isinstance(data, dict):
        logger.warning("Settings file %s is not a JSON object, using defaults", path)
        return GenerationSettings()
    known = {f.name for f in fields(GenerationSettings)}
    return GenerationSettings.from_dict({k: v for k, v in data.items() if k in known})


def save_settings(path: str, settings: GenerationSettings) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        json.dump(settings.to_dict(), f, indent=2)
    return path
