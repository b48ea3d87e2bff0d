"""Text helpers: token estimation, sentence splitting and overlap selection."""

from __future__ import annotations

import math
import re
from typing import Iterator, List, Sequence

CHARS_PER_TOKEN = 4

# Terminator run followed by whitespace and an uppercase letter.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")


def estimate_tokens(text: str) -> int:
    """Approximate the token count of *text* as ``ceil(len / 4)``.

    Deliberately coarse: it only has to be monotonic enough to keep chunks
    inside a usable size envelope, not to match any tokenizer.
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def split_into_sentences(text: str) -> List[str]:
    """Split text into sentence-like units.

    Newlines are hard boundaries. Inside a line a unit ends after ``.``,
    ``!`` or ``?`` when whitespace and an uppercase letter follow, or when
    the line ends. Abbreviations such as "Dr. Smith" will over-split.

    A terminator followed directly by another character ("v1.2",
    "now.Then") is not a boundary: chunks rejoin units with a space, which
    would otherwise alter the text.
    """
    sentences: List[str] = []
    for line in text.split("\n"):
        for part in _SENTENCE_BOUNDARY.split(line):
            part = part.strip()
            if part:
                sentences.append(part)
    if not sentences and text.strip():
        return [text.strip()]
    return sentences


def split_oversized(sentence: str, max_tokens: int) -> Iterator[str]:
    """Break a single unit longer than *max_tokens* at whitespace.

    Words longer than the budget on their own are cut at the character
    limit.
    """
    max_chars = max(max_tokens * CHARS_PER_TOKEN, 1)
    if len(sentence) <= max_chars:
        yield sentence
        return

    current = ""
    for word in sentence.split():
        while len(word) > max_chars:
            if current:
                yield current
                current = ""
            yield word[:max_chars]
            word = word[max_chars:]
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars:
            yield current
            current = word
        else:
            current = candidate
    if current:
        yield current


def tail_overlap(sentences: Sequence[str], max_tokens: int) -> List[str]:
    """Return the longest whole-sentence suffix within *max_tokens*.

    Falls back to the last sentence alone so the next chunk always carries
    some context forward.
    """
    if not sentences:
        return []

    tail: List[str] = []
    for sentence in reversed(sentences):
        if estimate_tokens(" ".join([sentence, *tail])) > max_tokens:
            break
        tail.insert(0, sentence)
    return tail or [sentences[-1]]


def add_document_context(content: str, document_title: str) -> str:
    """Prefix chunk text with a one-line document title header."""
    return f"# {document_title}\n\n{content.strip()}"
