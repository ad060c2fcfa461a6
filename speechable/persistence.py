"""Storage of generated audio and word timings."""

import base64
import json
import logging
import os
import re
import shutil
from datetime import datetime, timezone
from typing import Protocol

from speechable.constants import OUTPUT_DIR, VERSION
from speechable.models import WordTiming
from speechable.wav import parse_wav

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:audio/wav;base64,"
AUDIO_FILE = "audio.wav"
TIMINGS_FILE = "timings.json"
MANIFEST_FILE = "output.json"


class AudioStore(Protocol):
    def save(self, post_id: str, audio_data_url: str, timings_json: str) -> str:
        ...


def to_data_url(wav: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(wav).decode("ascii")


def from_data_url(url: str) -> bytes:
    """Decode a base64 data URL; any media type is accepted."""
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("not a base64 data URL")
    return base64.b64decode(payload)


def serialize_timings(timings: list[WordTiming]) -> str:
    return json.dumps([t.to_dict() for t in timings])


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_timings(timings_json: str) -> list[WordTiming]:
    """Parse stored timings, keeping only entries with numeric start and end.

    Malformed JSON yields an empty list.
    """
    try:
        data = json.loads(timings_json)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Malformed timings JSON, ignoring")
        return []
    if not isinstance(data, list):
        return []

    timings = []
    for item in data:
        if not isinstance(item, dict):
            continue
        start, end = item.get("start"), item.get("end")
        if not _is_number(start) or not _is_number(end):
            continue
        index = item.get("index")
        timings.append(WordTiming(
            word=str(item.get("word", "")),
            index=index if isinstance(index, int) else len(timings),
            start_ms=float(start),
            end_ms=float(end),
        ))
    return timings


def slug_from_post_id(post_id) -> str:
    """"My Post #12" -> "my_post_12"."""
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", str(post_id)).strip("_").lower()
    if not slug:
        raise ValueError(f"post id {post_id!r} has no usable characters")
    return slug


class FileStore:
    """Stores each post under <output_base>/<slug>/ as audio.wav, timings.json
    and an output.json manifest."""

    def __init__(self, output_base: str = OUTPUT_DIR):
        self.output_base = output_base

    def post_dir(self, post_id) -> str:
        return os.path.join(self.output_base, slug_from_post_id(post_id))

    def save(self, post_id, audio_data_url: str, timings_json: str) -> str:
        """Write audio, timings and manifest. Returns the post directory."""
        wav = from_data_url(audio_data_url)
        info = parse_wav(wav)
        timings = parse_timings(timings_json)

        post_dir = self.post_dir(post_id)
        os.makedirs(post_dir, exist_ok=True)

        with open(os.path.join(post_dir, AUDIO_FILE), "wb") as f:
            f.write(wav)
        with open(os.path.join(post_dir, TIMINGS_FILE), "w") as f:
            f.write(timings_json)

        manifest = {
            "post_id": str(post_id),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "producer_version": VERSION,
            "audio": {
                "file": AUDIO_FILE,
                "sample_rate": info.sample_rate,
                "channels": info.channels,
                "bytes": len(wav),
            },
            "stats": {
                "duration_seconds": round(info.duration_ms / 1000, 1),
                "words": len(timings),
            },
        }
        with open(os.path.join(post_dir, MANIFEST_FILE), "w") as f:
            json.dump(manifest, f, indent=2)

        logger.info("Saved %s (%d bytes, %d words)", post_dir, len(wav), len(timings))
        return post_dir

    def load(self, post_id) -> tuple[bytes, list[WordTiming]] | None:
        """Return (wav, timings) for a stored post, or None if absent."""
        post_dir = self.post_dir(post_id)
        audio_path = os.path.join(post_dir, AUDIO_FILE)
        if not os.path.exists(audio_path):
            return None
        with open(audio_path, "rb") as f:
            wav = f.read()
        timings_path = os.path.join(post_dir, TIMINGS_FILE)
        timings = []
        if os.path.exists(timings_path):
            with open(timings_path) as f:
                timings = parse_timings(f.read())
        return wav, timings

    def manifest(self, post_id) -> dict | None:
        path = os.path.join(self.post_dir(post_id), MANIFEST_FILE)
        if not os.path.exists(path):
            return None
        with open(path) as f:
            return json.load(f)

    def delete(self, post_id) -> bool:
        post_dir = self.post_dir(post_id)
        if not os.path.exists(post_dir):
            return False
        shutil.rmtree(post_dir)
        return True

    def list_posts(self) -> list[str]:
        """Sorted slugs of directories holding stored audio."""
        if not os.path.exists(self.output_base):
            return []
        posts = []
        for name in os.listdir(self.output_base):
            if os.path.exists(os.path.join(self.output_base, name, AUDIO_FILE)):
                posts.append(name)
        return sorted(posts)
