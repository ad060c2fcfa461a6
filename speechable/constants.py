"""All magic numbers and configuration constants."""

MIN_CHUNK_LENGTH = 4                # chars — shorter fragments are merged into a neighbour
MAX_CHUNK_LENGTH = 1500             # chars — hard cap for one synthesis call
DEFAULT_CHUNK_SIZE = 1000           # chars — used when no quality preset applies
PARALLEL_CHUNKS = 3                 # concurrent synthesis calls per batch
LARGE_ASSEMBLY_THRESHOLD = 50       # chunk count above which WAV assembly is batched
ASSEMBLY_BATCH_SIZE = 20            # payloads copied between cooperative yields
MAX_WAV_SCAN_CHUNKS = 64            # RIFF sub-chunks inspected before giving up on "data"
WAV_HEADER_SIZE = 44                # canonical PCM header

PAUSE_SENTENCE_MS = 300.0           # pause after . ! ?
PAUSE_CLAUSE_MS = 150.0             # pause after , ; :
PAUSE_DASH_MS = 100.0               # pause after a trailing hyphen or dash
PAUSE_WORD_MS = 50.0                # default gap between words
PAUSE_BUDGET_RATIO = 0.5            # max share of a chunk's duration spent in pauses

MIN_ALIGNED_WORD_MS = 1.0           # floor for zero-length ASR word intervals
ALIGNMENT_YIELD_EVERY = 500         # ASR words converted between cooperative yields
ASR_CHUNK_LENGTH_S = 30             # ASR window length
ASR_STRIDE_S = 5                    # ASR window overlap
ASR_DISABLED = "none"               # model id sentinel that turns alignment off

PITCH_LIMIT_SEMITONES = 6           # effects clamp pitch shift to a subtle range
SPEED_MIN = 0.5
SPEED_MAX = 2.0
REVERB_MAX = 100                    # reverb amount scale 0..REVERB_MAX
REVERB_MIN_SECONDS = 0.1            # impulse length at amount 0
REVERB_SPAN_SECONDS = 0.7           # extra impulse length at amount 100
REVERB_MAX_WET = 0.25               # wet share at amount 100
REVERB_EARLY_MS = 20                # early-reflection window
REVERB_EARLY_LEVEL = 0.5
REVERB_NOISE_LEVEL = 0.3
REVERB_DIRECT_LEVEL = 0.8
REVERB_DECAY = 3.0
REVERB_STEREO_SPREAD = (0.98, 1.02)

LARGE_TEXT_THRESHOLD = 2000         # words — warn about long generations
SPEECH_WORDS_PER_MINUTE = 150
PROCESSING_MINUTES_PER_1000_CHARS = 0.3

DEFAULT_VOICE = "en-US-AriaNeural"
DEFAULT_LANGUAGE = "en"
DEFAULT_QUALITY = "medium"
DEFAULT_VOICE_PRESET = "default"
DEFAULT_ASR_MODEL = "tiny.en"
TTS_RATE = "+0%"                    # edge-tts relative speech rate
OUTPUT_DIR = "output"
VERSION = "0.1.0"
