"""Simulated token streaming for complete model replies."""

from __future__ import annotations

import random
import re
from typing import Iterator, Optional

_SENTENCE_END = re.compile(r"[.!?]")
_CLAUSE_BREAK = re.compile(r"[,;:]")


def chunk_delay(chunk: str, rng: random.Random) -> float:
    """Return the pause in seconds after emitting ``chunk``."""

    if "\n\n" in chunk:
        return 0.2
    if "\n" in chunk:
        return 0.12
    if _SENTENCE_END.search(chunk):
        return 0.18
    if _CLAUSE_BREAK.search(chunk):
        return 0.1
    if " " in chunk:
        return 0.06
    return 0.025 + rng.random() * 0.03


def stream_chunks(
    text: str, rng: Optional[random.Random] = None
) -> Iterator[tuple[str, float]]:
    """Yield ``(partial_text, delay)`` pairs, growing by one to three characters."""

    rng = rng or random.Random()
    index = 0
    while index < len(text):
        roll = rng.random()
        size = 3 if roll > 0.8 else 2 if roll > 0.5 else 1
        chunk = text[index : index + size]
        index += len(chunk)
        yield text[:index], chunk_delay(chunk, rng)
