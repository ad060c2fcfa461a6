"""CLI interface with subcommand routing."""

import argparse
import asyncio
import logging
import os
import signal
import sys

from speechable.alignment import AlignerHandle, FasterWhisperAligner
from speechable.chunker import chunk
from speechable.constants import OUTPUT_DIR, VERSION
from speechable.models import Cancelled
from speechable.normalizer import normalize
from speechable.orchestrator import CancellationToken
from speechable.persistence import FileStore, slug_from_post_id
from speechable.pipeline import EmptyContentError, generate
from speechable.settings import (
    ASR_MODELS,
    QUALITY_PRESETS,
    VOICE_PRESETS,
    GenerationSettings,
    load_settings,
)
from speechable.timing import estimate_generation_seconds, format_estimate, is_large_text, word_at
from speechable.tts import VOICE_POOL, EdgeTTSEngine, EngineHandle, SynthesisError, filter_voices
from speechable.wav import WavFormatError, parse_wav

EXIT_CANCELLED = 130


def _read_text(file_path: str) -> str:
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    with open(file_path, encoding="utf-8") as f:
        return f.read()


def _settings_from_args(args) -> GenerationSettings:
    """Settings file first, then any flags given on the command line."""
    base = load_settings(args.settings) if getattr(args, "settings", None) else GenerationSettings()
    data = base.to_dict()
    overrides = {
        "voice": getattr(args, "voice", None),
        "quality": getattr(args, "quality", None),
        "voice_preset": getattr(args, "preset", None),
        "pitch_semitones": getattr(args, "pitch", None),
        "reverb": getattr(args, "reverb", None),
        "speed": getattr(args, "speed", None),
        "asr_model": getattr(args, "asr_model", None),
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    # Explicit effect values only stick with the custom preset
    explicit_effects = overrides["pitch_semitones"] is not None or overrides["reverb"] is not None
    if explicit_effects and overrides["voice_preset"] is None:
        data["voice_preset"] = "custom"
    return GenerationSettings.from_dict(data)


def _print_status(message: str, percent: float | None) -> None:
    if percent is None:
        print(f"  {message}")
    else:
        print(f"  [{percent:5.1f}%] {message}")


def cmd_generate(args):
    """Generate narrated audio and word timings for a text file."""
    text = _read_text(args.file)
    settings = _settings_from_args(args)
    post_id = args.post_id or os.path.splitext(os.path.basename(args.file))[0]
    try:
        slug_from_post_id(post_id)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    preset = settings.quality_preset()
    print(f"Generating: {post_id}")
    print(f"  Voice: {settings.voice}  Quality: {preset.label}  Preset: {settings.voice_preset}")
    print(f"  Estimated time: {format_estimate(estimate_generation_seconds(text, settings.quality))}")
    if is_large_text(text):
        print("  Large text: generation may take a while.")

    engine = EngineHandle(lambda: EdgeTTSEngine(sample_rate=preset.sample_rate, rate=settings.tts_rate()))
    aligner = AlignerHandle(FasterWhisperAligner, settings.asr_model) if settings.alignment_enabled else None
    store = FileStore(args.output_dir)
    token = CancellationToken()

    previous = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        outcome = asyncio.run(generate(
            text, settings, engine,
            aligner=aligner, store=store, post_id=post_id, token=token, on_status=_print_status,
        ))
    except EmptyContentError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    except SynthesisError as e:
        print(f"Error: Speech synthesis failed: {e}", file=sys.stderr)
        raise SystemExit(1)
    finally:
        signal.signal(signal.SIGINT, previous)

    if isinstance(outcome, Cancelled):
        raise SystemExit(EXIT_CANCELLED)

    print(f"\nDone! {store.post_dir(post_id)}")
    print(f"  Duration: {outcome.duration_ms / 1000:.1f}s")
    print(f"  Chunks: {outcome.chunk_count}")
    print(f"  Words: {len(outcome.timings.words)} ({outcome.timings.source} timings)")


def cmd_normalize(args):
    """Print the normalized form of a text file."""
    print(normalize(_read_text(args.file)))


def cmd_chunk(args):
    """Print the chunks a text file would be synthesized in."""
    preset = QUALITY_PRESETS[args.quality]
    chunks = chunk(normalize(_read_text(args.file)), preset.chunk_size)
    if not chunks:
        print("No speakable text.")
        return
    print(f"{len(chunks)} chunks (max {preset.chunk_size} chars):")
    for c in chunks:
        print(f"  [{c.index:03d}] ({len(c.text)}) {c.text}")


def cmd_voices(args):
    """List available voices."""
    voices = filter_voices(VOICE_POOL, args.filter)
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v}")


def cmd_presets(args):
    """List quality presets, voice presets and ASR models."""
    print("Quality presets:")
    for p in QUALITY_PRESETS.values():
        print(f"  {p.name:<8} {p.chunk_size:>5} chars  {p.sample_rate} Hz  {p.label}")
    print("Voice presets:")
    for p in VOICE_PRESETS.values():
        print(f"  {p.name:<10} pitch {p.pitch_semitones:+d}  reverb {p.reverb}")
    print("  custom     (uses --pitch/--reverb)")
    print("ASR models:")
    for name, desc in ASR_MODELS.items():
        print(f"  {name:<9} {desc}")


def cmd_status(args):
    """Show stored audio for a post, optionally the word spoken at a time."""
    store = FileStore(args.output_dir)
    stored = store.load(args.post_id)
    if stored is None:
        print(f"Error: No audio stored for '{args.post_id}'.", file=sys.stderr)
        raise SystemExit(1)

    wav, timings = stored
    try:
        info = parse_wav(wav)
    except WavFormatError as e:
        print(f"Error: Stored audio is unreadable: {e}", file=sys.stderr)
        raise SystemExit(1)

    manifest = store.manifest(args.post_id) or {}
    print(f"Post: {args.post_id}")
    print(f"Generated: {manifest.get('generated_at', 'unknown')}")
    print(f"Audio: {info.duration_ms / 1000:.1f}s, {info.sample_rate} Hz, {info.channels} ch")
    print(f"Words: {len(timings)}")

    if args.at is not None:
        word = word_at(timings, args.at * 1000)
        if word is None:
            print(f"At {args.at:.2f}s: (silence)")
        else:
            print(f"At {args.at:.2f}s: #{word.index} \"{word.word}\" "
                  f"[{word.start_ms / 1000:.2f}s-{word.end_ms / 1000:.2f}s]")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="speechable",
        description="Speechable — turn long-form text into narrated audio with word timings",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate
    gen_parser = subparsers.add_parser("generate", help="Generate audio and word timings from a text file")
    gen_parser.add_argument("file", help="Path to the text file")
    gen_parser.add_argument("--post-id", help="Storage id (default: file name)")
    gen_parser.add_argument("--voice", help="Voice id (see 'voices')")
    gen_parser.add_argument("--quality", choices=sorted(QUALITY_PRESETS), help="Quality preset")
    gen_parser.add_argument("--preset", choices=sorted(VOICE_PRESETS) + ["custom"], help="Voice effect preset")
    gen_parser.add_argument("--pitch", type=int, help="Pitch shift in semitones (-6..6)")
    gen_parser.add_argument("--reverb", type=int, help="Reverb amount (0..100)")
    gen_parser.add_argument("--speed", type=float, help="Speech speed (0.5..2.0)")
    gen_parser.add_argument("--asr-model", choices=sorted(ASR_MODELS), help="Word alignment model")
    gen_parser.add_argument("--settings", help="Path to a settings JSON file")
    gen_parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Output directory")
    gen_parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details")
    gen_parser.set_defaults(func=cmd_generate)

    # normalize
    norm_parser = subparsers.add_parser("normalize", help="Print normalized text")
    norm_parser.add_argument("file", help="Path to the text file")
    norm_parser.set_defaults(func=cmd_normalize)

    # chunk
    chunk_parser = subparsers.add_parser("chunk", help="Print synthesis chunks")
    chunk_parser.add_argument("file", help="Path to the text file")
    chunk_parser.add_argument("--quality", choices=sorted(QUALITY_PRESETS), default="medium", help="Quality preset")
    chunk_parser.set_defaults(func=cmd_chunk)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # presets
    presets_parser = subparsers.add_parser("presets", help="List quality and voice presets")
    presets_parser.set_defaults(func=cmd_presets)

    # status
    status_parser = subparsers.add_parser("status", help="Show stored audio for a post")
    status_parser.add_argument("post_id", help="Post id")
    status_parser.add_argument("--at", type=float, help="Show the word spoken at this time (seconds)")
    status_parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Output directory")
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args()

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return

    args.func(args)
