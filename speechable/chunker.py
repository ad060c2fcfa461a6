"""Split normalized text into bounded-size chunks for synthesis."""

import re

from speechable.constants import DEFAULT_CHUNK_SIZE, MAX_CHUNK_LENGTH, MIN_CHUNK_LENGTH
from speechable.models import Chunk

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])(?=\s+|$)")
_TERMINAL_RE = re.compile(r"[.!?]$")


def iter_sentences(line: str):
    """Yield the sentences of one line, terminal punctuation included."""
    for sentence in _SENTENCE_SPLIT_RE.split(line):
        sentence = sentence.strip()
        if sentence:
            yield sentence


def _split_long(sentence: str, max_len: int) -> list[str]:
    """Hard-split a sentence at word boundaries into pieces of at most max_len."""
    pieces = []
    current = ""
    for word in sentence.split():
        # A single word longer than the limit is cut by characters
        while len(word) > max_len:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_len])
            word = word[max_len:]
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_len:
            current = candidate
        else:
            pieces.append(current)
            current = word
    if current:
        pieces.append(current)
    return pieces


def _pack_line(line: str, max_len: int) -> list[str]:
    """Greedily pack the sentences of one line into chunks of at most max_len."""
    chunks = []
    current = ""

    for sentence in iter_sentences(line):
        if len(sentence) > max_len:
            pieces = _split_long(sentence, max_len)
            if current:
                chunks.append(current)
            chunks.extend(pieces[:-1])
            # The tail of a long sentence can still take following sentences
            current = pieces[-1]
            continue

        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) > max_len:
            chunks.append(current)
            current = sentence
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks


def _merge_short(texts: list[str], max_len: int) -> list[str]:
    """Fold fragments shorter than MIN_CHUNK_LENGTH into a neighbour.

    A fragment joins the previous chunk when the result fits, otherwise the
    next one; if neither fits it is kept as its own chunk so no text is lost.
    """
    merged: list[str] = []
    carry = ""
    for text in texts:
        if carry:
            candidate = f"{carry} {text}"
            if len(candidate) <= max_len:
                text = candidate
            else:
                merged.append(carry)
            carry = ""

        if len(text) >= MIN_CHUNK_LENGTH:
            merged.append(text)
        elif merged and len(merged[-1]) + 1 + len(text) <= max_len:
            merged[-1] = f"{merged[-1]} {text}"
        else:
            carry = text

    if carry:
        merged.append(carry)
    return merged


def clamp_chunk_size(max_chunk_size: int) -> int:
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
    return max(MIN_CHUNK_LENGTH, min(max_chunk_size, MAX_CHUNK_LENGTH))


def chunk(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[Chunk]:
    """Split text into ordered chunks along sentence and word boundaries.

    Each non-blank line is terminated with "." if it lacks sentence-final
    punctuation, split into sentences and packed greedily up to the clamped
    maximum. Returns an empty list only for empty or whitespace-only text.
    """
    if not text or not text.strip():
        return []

    max_len = clamp_chunk_size(max_chunk_size)
    texts = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        if not _TERMINAL_RE.search(line):
            line += "."
        texts.extend(_pack_line(line, max_len))

    return [Chunk(index=i, text=t) for i, t in enumerate(_merge_short(texts, max_len))]
