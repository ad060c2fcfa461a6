"""Tests for generation settings."""

import json
import logging

import pytest

from speechable.settings import (
    ASR_MODELS,
    QUALITY_PRESETS,
    VOICE_PRESETS,
    GenerationSettings,
    load_settings,
    save_settings,
)


def test_quality_presets():
    assert {n: (p.chunk_size, p.sample_rate) for n, p in QUALITY_PRESETS.items()} == {
        "low": (1500, 16000),
        "medium": (1000, 22050),
        "high": (600, 22050),
    }


def test_voice_presets_table():
    assert len(VOICE_PRESETS) == 12
    assert (VOICE_PRESETS["narrator"].pitch_semitones, VOICE_PRESETS["narrator"].reverb) == (-2, 20)
    assert (VOICE_PRESETS["hall"].pitch_semitones, VOICE_PRESETS["hall"].reverb) == (0, 50)


def test_asr_models_include_disabled():
    assert set(ASR_MODELS) == {"tiny.en", "tiny", "small.en", "small", "none"}


def test_defaults():
    settings = GenerationSettings()
    assert settings.quality == "medium"
    assert settings.effect_settings().bypass
    assert settings.alignment_enabled


def test_from_dict_named_preset_overrides_effects():
    settings = GenerationSettings.from_dict({"voice_preset": "deep", "pitch_semitones": 3, "reverb": 90})
    assert (settings.pitch_semitones, settings.reverb) == (-4, 12)


def test_from_dict_custom_preset_keeps_values():
    settings = GenerationSettings.from_dict({"voice_preset": "custom", "pitch_semitones": 3, "reverb": 40})
    effects = settings.effect_settings()
    assert (effects.pitch_semitones, effects.reverb) == (3, 40)


def test_from_dict_clamps():
    settings = GenerationSettings.from_dict(
        {"voice_preset": "custom", "pitch_semitones": -20, "reverb": 250, "speed": 9},
    )
    assert settings.pitch_semitones == -6
    assert settings.reverb == 100
    assert settings.speed == 2.0


def test_from_dict_unknown_values_fall_back(caplog):
    with caplog.at_level(logging.WARNING, logger="speechable.settings"):
        settings = GenerationSettings.from_dict(
            {"quality": "ultra", "voice_preset": "robot", "asr_model": "large-v3", "reverb": "lots"},
        )
    assert settings.quality == "medium"
    assert settings.voice_preset == "default"
    assert settings.asr_model == "tiny.en"
    assert settings.reverb == 0
    assert caplog.text.count("Unknown") == 3


def test_from_dict_accepts_hub_model_ids():
    assert GenerationSettings.from_dict({"asr_model": "Xenova/whisper-small.en"}).asr_model == "small.en"


def test_quality_preset_lookup():
    assert GenerationSettings(quality="high").quality_preset().chunk_size == 600


@pytest.mark.parametrize("speed, rate", [(1.0, "+0%"), (1.25, "+25%"), (0.5, "-50%")])
def test_tts_rate(speed, rate):
    assert GenerationSettings(speed=speed).tts_rate() == rate


def test_alignment_disabled():
    assert not GenerationSettings(asr_model="none").alignment_enabled


def test_save_and_load(tmp_path):
    path = tmp_path / "conf" / "settings.json"
    original = GenerationSettings(voice="en-GB-SoniaNeural", quality="low", voice_preset="radio",
                                  pitch_semitones=0, reverb=15)
    save_settings(str(path), original)
    assert json.loads(path.read_text())["voice"] == "en-GB-SoniaNeural"
    assert load_settings(str(path)) == original


def test_load_missing_file(tmp_path):
    assert load_settings(str(tmp_path / "nope.json")) == GenerationSettings()


def test_load_malformed_file(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(str(path)) == GenerationSettings()
    assert "Malformed settings file" in caplog.text


def test_load_ignores_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"quality": "high", "color_highlight": "#fef08a"}))
    assert load_settings(str(path)).quality == "high"
